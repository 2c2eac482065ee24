"""Tests for tracks, options (including environment configuration) and results."""

import pytest
from pydantic import ValidationError

from setlist_optimizer.errors import TrackCountError
from setlist_optimizer.models import OptimizationOptions, OptimizationResult, Track


class TestTrack:

    def test_key_normalized(self):
        assert Track(id="1", key=" 8a ").key == "8A"

    def test_blank_key_is_none(self):
        track = Track(id="1", key="  ")
        assert track.key is None
        assert not track.has_key

    def test_id_coerced_to_string(self):
        assert Track(id=42).id == "42"

    def test_frozen(self):
        track = Track(id="1", bpm=120)
        with pytest.raises(ValidationError):
            track.bpm = 130

    def test_duration_formatted(self):
        assert Track(id="1", duration=385).duration_formatted() == "6:25"
        assert Track(id="1").duration_formatted() == "0:00"


class TestOptimizationOptions:

    def test_defaults(self):
        options = OptimizationOptions()
        assert options.harmonic_weight == 0.7
        assert options.energy_weight == 0.3
        assert options.start_with is None
        assert options.end_with is None
        assert options.generations == 1000
        assert options.population_size == 100
        assert options.mutation_rate == 0.1
        assert options.lookahead == 3

    def test_partial_override_keeps_other_defaults(self):
        options = OptimizationOptions(harmonic_weight=0.9, start_with=7)
        assert options.harmonic_weight == 0.9
        assert options.energy_weight == 0.3
        assert options.start_with == "7"

    def test_single_slider(self):
        options = OptimizationOptions().with_harmonic_weight(0.8)
        assert options.harmonic_weight == 0.8
        assert options.energy_weight == pytest.approx(0.2)

    @pytest.mark.parametrize("field,value", [
        ("mutation_rate", 1.5),
        ("mutation_rate", -0.1),
        ("generations", 0),
        ("population_size", 1),
        ("lookahead", -1),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            OptimizationOptions(**{field: value})

    def test_from_env(self):
        environ = {
            "SETLIST_OPTIMIZER_HARMONIC_WEIGHT": "0.5",
            "SETLIST_OPTIMIZER_GENERATIONS": "200",
            "SETLIST_OPTIMIZER_SEED": "42",
            "SETLIST_OPTIMIZER_LOOKAHEAD": "",
        }
        options = OptimizationOptions.from_env(environ)
        assert options.harmonic_weight == 0.5
        assert options.energy_weight == 0.3
        assert options.generations == 200
        assert options.seed == 42
        assert options.lookahead == 3

    def test_from_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SETLIST_OPTIMIZER_POPULATION_SIZE", "20")
        options = OptimizationOptions.from_env(end_with="t9")
        assert options.population_size == 20
        assert options.end_with == "t9"


class TestOptimizationResult:

    def test_positions(self):
        result = OptimizationResult(order=["b", "a", "c"], score=80.0, method="brute_force")
        assert result.positions() == {"b": 1, "a": 2, "c": 3}


class TestTrackCountError:

    def test_min_bound(self):
        error = TrackCountError(1, "min", 2)
        assert "at least 2" in str(error)
        assert isinstance(error, ValueError)

    def test_to_dict(self):
        data = TrackCountError(51, "max", 50).to_dict()
        assert data["error"] == "TrackCountError"
        assert data["bound"] == "max"
        assert data["limit"] == 50

"""Tests for Camelot wheel parsing, compatibility and transition scoring."""

import pytest

from setlist_optimizer.camelot import INDICATORS, CamelotWheel
from setlist_optimizer.models import CompatibilityLevel, TransitionQuality


@pytest.fixture
def wheel():
    return CamelotWheel()


class TestParseKey:

    def test_parse_minor(self, wheel):
        assert wheel.parse_key("8A") == (8, "A")

    def test_parse_double_digit_major(self, wheel):
        parsed = wheel.parse_key("12B")
        assert parsed.position == 12
        assert parsed.mode == "B"

    @pytest.mark.parametrize("key", ["13A", "0A", "8C", "A8", "8", "", "8AB", "8A ", "8a"])
    def test_invalid_keys(self, wheel, key):
        assert wheel.parse_key(key) is None

    def test_none(self, wheel):
        assert wheel.parse_key(None) is None

    def test_round_trip_all_keys(self, wheel):
        for position in range(1, 13):
            for mode in ("A", "B"):
                key = f"{position}{mode}"
                parsed = wheel.parse_key(key)
                assert wheel.format_key(parsed.position, parsed.mode) == key


class TestWheelArithmetic:

    def test_wrap_forward(self, wheel):
        assert wheel.wrap_position(12, 1) == 1

    def test_wrap_backward(self, wheel):
        assert wheel.wrap_position(1, -1) == 12

    def test_wrap_plus_seven(self, wheel):
        assert wheel.wrap_position(10, 7) == 5

    def test_position_difference_wraps(self, wheel):
        assert wheel.position_difference(12, 1) == 1
        assert wheel.position_difference(1, 7) == 6

    def test_opposite_mode(self, wheel):
        assert wheel.opposite_mode("A") == "B"
        assert wheel.opposite_mode("B") == "A"


class TestCompatibleKeys:

    def test_same(self, wheel):
        assert wheel.compatible_keys("8A", CompatibilityLevel.SAME) == ["8A"]

    def test_smooth(self, wheel):
        assert set(wheel.compatible_keys("8A", CompatibilityLevel.SMOOTH)) == {"7A", "9A", "8B"}

    def test_smooth_wraps(self, wheel):
        assert set(wheel.compatible_keys("1B", "smooth")) == {"12B", "2B", "1A"}

    def test_energy_boost(self, wheel):
        assert wheel.compatible_keys("8A", CompatibilityLevel.ENERGY_BOOST) == ["3A"]

    def test_energy_boost_wraps(self, wheel):
        assert wheel.compatible_keys("10A", CompatibilityLevel.ENERGY_BOOST) == ["5A"]

    def test_all_is_deduplicated_union(self, wheel):
        keys = wheel.compatible_keys("8A")
        assert len(keys) == len(set(keys))
        assert set(keys) == {"8A", "7A", "9A", "8B", "3A"}

    def test_invalid_key(self, wheel):
        assert wheel.compatible_keys("13A") == []
        assert wheel.compatible_keys(None) == []


class TestTransitionQuality:

    @pytest.mark.parametrize("from_key,to_key,expected", [
        ("8A", "8A", TransitionQuality.PERFECT),
        ("8A", "7A", TransitionQuality.SMOOTH),
        ("8A", "9A", TransitionQuality.SMOOTH),
        ("8A", "8B", TransitionQuality.SMOOTH),
        ("8B", "8A", TransitionQuality.SMOOTH),
        ("12A", "1A", TransitionQuality.SMOOTH),
        ("1B", "12B", TransitionQuality.SMOOTH),
        ("8A", "3A", TransitionQuality.ENERGY_BOOST),
        ("10B", "5B", TransitionQuality.ENERGY_BOOST),
        ("8A", "1A", TransitionQuality.ROUGH),
        ("8A", "9B", TransitionQuality.ROUGH),
        ("8A", "3B", TransitionQuality.ROUGH),
    ])
    def test_quality(self, wheel, from_key, to_key, expected):
        assert wheel.transition_quality(from_key, to_key) == expected

    def test_energy_boost_is_directional(self, wheel):
        assert wheel.transition_quality("8A", "3A") == TransitionQuality.ENERGY_BOOST
        assert wheel.transition_quality("3A", "8A") == TransitionQuality.ROUGH

    @pytest.mark.parametrize("from_key,to_key", [
        (None, "8A"), ("8A", None), (None, None), ("13A", "8A"), ("8A", "8C"), ("13A", "13A"),
    ])
    def test_unparseable_is_rough(self, wheel, from_key, to_key):
        assert wheel.transition_quality(from_key, to_key) == TransitionQuality.ROUGH


class TestTransitionScore:

    def test_smooth_and_boost_outscore_perfect(self, wheel):
        assert wheel.transition_score("8A", "9A") == 3
        assert wheel.transition_score("8A", "3A") == 3
        assert wheel.transition_score("8A", "8A") == 2
        assert wheel.transition_score("8A", "1A") == 0


class TestIndicator:

    def test_known_quality(self, wheel):
        assert wheel.indicator(TransitionQuality.ENERGY_BOOST) == INDICATORS[TransitionQuality.ENERGY_BOOST]

    def test_string_quality(self, wheel):
        assert wheel.indicator("perfect") == INDICATORS[TransitionQuality.PERFECT]

    @pytest.mark.parametrize("quality", [None, "unknown"])
    def test_unknown_defaults_to_rough(self, wheel, quality):
        assert wheel.indicator(quality) == INDICATORS[TransitionQuality.ROUGH]

"""
Data models for the setlist optimizer.

Tracks are read-only inputs supplied by the caller.  Options and results are
immutable values created for a single optimization call.
"""

import os
from enum import Enum
from typing import Dict, List, Mapping, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Camelot primitives
# ---------------------------------------------------------------------------

class CamelotKey(NamedTuple):
    """A parsed Camelot key: wheel position 1-12 and mode A (minor) / B (major)."""

    position: int
    mode: str


class TransitionQuality(str, Enum):
    PERFECT = "perfect"
    SMOOTH = "smooth"
    ENERGY_BOOST = "energy_boost"
    ROUGH = "rough"


class CompatibilityLevel(str, Enum):
    SAME = "same"
    SMOOTH = "smooth"
    ENERGY_BOOST = "energy_boost"
    ALL = "all"


# ---------------------------------------------------------------------------
# Tracks
# ---------------------------------------------------------------------------

class Track(BaseModel):
    """A track as seen by the optimizer. Never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    artist: Optional[str] = None
    bpm: Optional[float] = None
    key: Optional[str] = None
    duration: int = 0  # seconds

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        return str(v)

    @field_validator("key", mode="before")
    @classmethod
    def _normalize_key(cls, v):
        if v is None:
            return None
        v = str(v).strip().upper()
        return v or None

    @property
    def has_key(self) -> bool:
        return self.key is not None

    def duration_formatted(self) -> str:
        """Convert duration seconds to 'M:SS'."""
        if not self.duration:
            return "0:00"
        m, s = divmod(int(self.duration), 60)
        return f"{m}:{s:02d}"


class Transition(BaseModel):
    """A key change between two consecutive keyed tracks."""

    from_track_id: str
    to_track_id: str
    from_key: str
    to_key: str
    quality: TransitionQuality
    indicator: str


# ---------------------------------------------------------------------------
# Optimization options / result
# ---------------------------------------------------------------------------

_ENV_PREFIX = "SETLIST_OPTIMIZER_"

# option name -> parser for the matching environment variable
_ENV_FIELDS = {
    "harmonic_weight": float,
    "energy_weight": float,
    "generations": int,
    "population_size": int,
    "mutation_rate": float,
    "lookahead": int,
    "seed": int,
}


class OptimizationOptions(BaseModel):
    """
    Tuning for one optimization call.

    Weights are independent; the arrangement score is simply
    ``harmonic * harmonic_weight + energy * energy_weight``.
    ``start_with`` / ``end_with`` are track ids locked to the first / last slot.
    """

    model_config = ConfigDict(frozen=True)

    harmonic_weight: float = 0.7
    energy_weight: float = 0.3
    start_with: Optional[str] = None
    end_with: Optional[str] = None
    generations: int = Field(default=1000, ge=1)
    population_size: int = Field(default=100, ge=2)
    mutation_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    lookahead: int = Field(default=3, ge=0)
    seed: Optional[int] = None

    @field_validator("start_with", "end_with", mode="before")
    @classmethod
    def _coerce_track_id(cls, v):
        return None if v is None or v == "" else str(v)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "OptimizationOptions":
        """Build options from SETLIST_OPTIMIZER_* variables; unset ones keep defaults."""
        environ = os.environ if environ is None else environ
        values = {}
        for name, parse in _ENV_FIELDS.items():
            raw = environ.get(_ENV_PREFIX + name.upper(), "").strip()
            if raw:
                values[name] = parse(raw)
        values.update(overrides)
        return cls(**values)

    def with_harmonic_weight(self, harmonic_weight: float) -> "OptimizationOptions":
        """Single-slider form: energy weight becomes the complement."""
        return self.model_copy(
            update={"harmonic_weight": harmonic_weight, "energy_weight": 1.0 - harmonic_weight}
        )


class OptimizationResult(BaseModel):
    order: List[str]
    score: float
    method: str
    computation_time: float = 0.0
    old_order: List[str] = Field(default_factory=list)
    old_score: float = 0.0
    new_score: float = 0.0
    score_improvement_percent: float = 0.0
    generations: Optional[int] = None

    def positions(self) -> Dict[str, int]:
        """Track id -> 1-based position in the optimized order."""
        return {track_id: i + 1 for i, track_id in enumerate(self.order)}


# ---------------------------------------------------------------------------
# Analysis results
# ---------------------------------------------------------------------------

class FlowAnalysis(BaseModel):
    base_score: float
    consecutive_penalty: int
    variety_bonus: int
    final_score: float
    insights: List[str] = Field(default_factory=list)
    transition_breakdown: Dict[str, int] = Field(default_factory=dict)


class TransitionAnalysis(BaseModel):
    transitions: List[Transition] = Field(default_factory=list)
    score: float
    total_transitions: int
    quality_counts: Dict[str, int] = Field(default_factory=dict)


class CompatibleTracks(BaseModel):
    perfect: List[Track] = Field(default_factory=list)
    smooth: List[Track] = Field(default_factory=list)
    energy_boost: List[Track] = Field(default_factory=list)


class SetSummary(BaseModel):
    track_count: int
    total_duration_seconds: int
    duration_formatted: str
    average_bpm: float


class EnergyFlowReport(BaseModel):
    energies: List[float]
    ideal_curve: List[float]
    arc_score: float
    average_energy: float
    issues: List[str] = Field(default_factory=list)

"""
Arrangement scoring

Combines harmonic flow (set_analysis) and energy arc (energy_planner) into one
weighted 0-100 score.  Search strategies call this thousands to millions of
times per optimization, so key qualities, track energies and ideal curves are
memoized in a ScoringContext that lives for exactly one optimize call.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from .camelot import CamelotWheel, TRANSITION_SCORES
from .energy_planner import EnergyPlanner, arc_similarity
from .models import OptimizationOptions, Track, TransitionQuality
from .set_analysis import final_score


class ScoringContext:
    """Per-call memo of pure per-track / per-key-pair values."""

    def __init__(
        self,
        camelot: Optional[CamelotWheel] = None,
        energy_planner: Optional[EnergyPlanner] = None,
    ):
        self.camelot = camelot or CamelotWheel()
        self.planner = energy_planner or EnergyPlanner(self.camelot)
        self._qualities: Dict[Tuple[str, str], TransitionQuality] = {}
        self._energies: Dict[str, float] = {}
        self._curves: Dict[int, List[float]] = {}

    def quality(self, from_key: str, to_key: str) -> TransitionQuality:
        pair = (from_key, to_key)
        quality = self._qualities.get(pair)
        if quality is None:
            quality = self._qualities[pair] = self.camelot.transition_quality(from_key, to_key)
        return quality

    def energy(self, track: Track) -> float:
        energy = self._energies.get(track.id)
        if energy is None:
            energy = self._energies[track.id] = self.planner.estimate_energy(track)
        return energy

    def ideal_curve(self, track_count: int) -> List[float]:
        curve = self._curves.get(track_count)
        if curve is None:
            curve = self._curves[track_count] = self.planner.ideal_energy_curve(track_count)
        return curve


class ArrangementScorer:
    """Scores candidate orderings: harmonic * harmonic_weight + energy * energy_weight."""

    def __init__(
        self,
        options: Optional[OptimizationOptions] = None,
        context: Optional[ScoringContext] = None,
    ):
        self.options = options or OptimizationOptions()
        self.context = context or ScoringContext()

    def harmonic_score(self, ordered_tracks: Sequence[Track]) -> float:
        """
        Flow score of the transitions between consecutive keyed tracks.

        Fewer than two keyed tracks means nothing to judge: neutral 100.
        """
        keys = [t.key for t in ordered_tracks if t.key is not None]
        if len(keys) < 2:
            return 100.0
        quality = self.context.quality
        return final_score([quality(a, b) for a, b in zip(keys, keys[1:])])

    def energy_score(self, ordered_tracks: Sequence[Track]) -> float:
        n = len(ordered_tracks)
        if n < 3:
            return 100.0
        energy = self.context.energy
        return arc_similarity([energy(t) for t in ordered_tracks], self.context.ideal_curve(n))

    def score(self, ordered_tracks: Sequence[Track]) -> float:
        return (
            self.harmonic_score(ordered_tracks) * self.options.harmonic_weight
            + self.energy_score(ordered_tracks) * self.options.energy_weight
        )

    def transition_score(self, from_track: Optional[Track], to_track: Optional[Track]) -> int:
        """Raw 0-3 score of one transition; 0 when either side has no key."""
        if from_track is None or to_track is None:
            return 0
        if from_track.key is None or to_track.key is None:
            return 0
        return TRANSITION_SCORES[self.context.quality(from_track.key, to_track.key)]


def score_arrangement(
    ordered_tracks: Sequence[Track],
    harmonic_weight: float = 0.7,
    energy_weight: float = 0.3,
) -> float:
    """One-off score of an ordering with a throwaway context."""
    options = OptimizationOptions(harmonic_weight=harmonic_weight, energy_weight=energy_weight)
    return ArrangementScorer(options).score(ordered_tracks)

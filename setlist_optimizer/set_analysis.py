"""
Set Analysis - harmonic flow scoring v2

Scores the chain of key transitions in an ordered set:

  base score           average transition score as a percentage of the maximum
  consecutive penalty  (run - 2) * 5 for every run of 3+ same-key transitions, max 30
  variety bonus        +10 for 3-4 transition types, +5 for 2
  final score          max(base - penalty + bonus, 0)

Tracks without a key are skipped when forming transitions; the remaining keyed
tracks are treated as adjacent.
"""

import time
from typing import Dict, List, Optional, Sequence

from .camelot import CamelotWheel, MAX_TRANSITION_SCORE, TRANSITION_SCORES
from .models import FlowAnalysis, SetSummary, Track, Transition, TransitionQuality

PENALTY_PER_EXTRA_REPEAT = 5
MAX_CONSECUTIVE_PENALTY = 30
PERFECT_RUN_THRESHOLD = 3


# ---------------------------------------------------------------------------
# Scoring over quality sequences
# ---------------------------------------------------------------------------

def base_score(qualities: Sequence[TransitionQuality]) -> float:
    if not qualities:
        return 100.0
    total = sum(TRANSITION_SCORES[q] for q in qualities)
    return round(total / (MAX_TRANSITION_SCORE * len(qualities)) * 100, 1)


def consecutive_runs(qualities: Sequence[TransitionQuality], quality: TransitionQuality) -> List[int]:
    """Lengths of maximal runs of ``quality``."""
    runs = []
    current = 0
    for q in qualities:
        if q == quality:
            current += 1
        else:
            if current:
                runs.append(current)
            current = 0
    if current:
        runs.append(current)
    return runs


def consecutive_penalty(qualities: Sequence[TransitionQuality]) -> int:
    """Penalize 3+ consecutive perfect matches (boring mixing)."""
    runs = consecutive_runs(qualities, TransitionQuality.PERFECT)
    penalty = sum((r - 2) * PENALTY_PER_EXTRA_REPEAT for r in runs if r >= PERFECT_RUN_THRESHOLD)
    return min(penalty, MAX_CONSECUTIVE_PENALTY)


def variety_bonus(qualities: Sequence[TransitionQuality]) -> int:
    if len(qualities) < 2:
        return 0
    types = len(set(qualities))
    if types >= 3:
        return 10
    if types == 2:
        return 5
    return 0


def final_score(qualities: Sequence[TransitionQuality]) -> float:
    score = base_score(qualities) - consecutive_penalty(qualities) + variety_bonus(qualities)
    return round(max(score, 0.0), 1)


def insights(qualities: Sequence[TransitionQuality], final: Optional[float] = None) -> List[str]:
    """Human-readable notes about the set. Advisory only; not used in scoring."""
    if final is None:
        final = final_score(qualities)
    notes = []

    perfect_runs = consecutive_runs(qualities, TransitionQuality.PERFECT)
    if any(r >= PERFECT_RUN_THRESHOLD for r in perfect_runs):
        notes.append(
            f"⚠️ {max(perfect_runs)} consecutive same-key transitions detected - consider adding variety"
        )

    rough_count = sum(1 for q in qualities if q == TransitionQuality.ROUGH)
    if rough_count:
        notes.append(f"🟡 {rough_count} rough transition(s) - consider reordering for better flow")

    if len(set(qualities)) >= 3 and rough_count == 0:
        notes.append("✨ Great variety of transition types with smooth flow!")

    boost_count = sum(1 for q in qualities if q == TransitionQuality.ENERGY_BOOST)
    if boost_count:
        notes.append(f"⚡ {boost_count} energy boost(s) detected - good for building peaks")

    if final >= 90:
        notes.append("🎵 Excellent harmonic mixing - professional quality!")
    elif final >= 75:
        notes.append("👍 Good harmonic flow with room for minor improvements")
    elif final < 60 and rough_count:
        notes.append("💡 Tip: Focus on compatible key transitions to improve flow")

    return notes


def transition_breakdown(qualities: Sequence[TransitionQuality]) -> Dict[str, int]:
    if not qualities:
        return {}
    breakdown = {q.value: 0 for q in TransitionQuality}
    for q in qualities:
        breakdown[q.value] += 1
    return breakdown


def keyed_pairs(tracks: Sequence[Track]) -> List[tuple]:
    """Consecutive (from, to) pairs among the tracks that carry a key."""
    keyed = [t for t in tracks if t.has_key]
    return list(zip(keyed, keyed[1:]))


# ---------------------------------------------------------------------------
# SetAnalysis
# ---------------------------------------------------------------------------

class SetAnalysis:
    """Detailed harmonic analysis of an ordered set."""

    def __init__(self, ordered_tracks: Sequence[Track], camelot: Optional[CamelotWheel] = None):
        self.camelot = camelot or CamelotWheel()
        self.tracks = list(ordered_tracks)
        self.transitions = self._build_transitions()

    @property
    def qualities(self) -> List[TransitionQuality]:
        return [t.quality for t in self.transitions]

    @property
    def score(self) -> float:
        return final_score(self.qualities)

    def detailed_analysis(self) -> FlowAnalysis:
        qualities = self.qualities
        final = final_score(qualities)
        return FlowAnalysis(
            base_score=base_score(qualities),
            consecutive_penalty=consecutive_penalty(qualities),
            variety_bonus=variety_bonus(qualities),
            final_score=final,
            insights=insights(qualities, final),
            transition_breakdown=transition_breakdown(qualities),
        )

    def _build_transitions(self) -> List[Transition]:
        transitions = []
        for src, dst in keyed_pairs(self.tracks):
            quality = self.camelot.transition_quality(src.key, dst.key)
            transitions.append(Transition(
                from_track_id=src.id,
                to_track_id=dst.id,
                from_key=src.key,
                to_key=dst.key,
                quality=quality,
                indicator=self.camelot.indicator(quality),
            ))
        return transitions


def summarize_set(tracks: Sequence[Track]) -> SetSummary:
    """Track count, total duration and average BPM of a set."""
    total = sum(t.duration or 0 for t in tracks)
    if total == 0:
        formatted = "0:00"
    else:
        formatted = time.strftime("%H:%M:%S" if total >= 3600 else "%M:%S", time.gmtime(total))

    bpms = [t.bpm for t in tracks if t.bpm is not None]
    return SetSummary(
        track_count=len(tracks),
        total_duration_seconds=total,
        duration_formatted=formatted,
        average_bpm=round(sum(bpms) / len(bpms), 1) if bpms else 0.0,
    )

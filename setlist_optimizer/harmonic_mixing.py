"""
Harmonic mixing helpers built on the Camelot wheel:

- transition analysis of an ordered set (qualities, indicators, base flow score)
- compatible-track lookup for a reference track, optionally within a BPM range
"""

from collections import Counter
from typing import Iterable, Optional, Sequence

from .camelot import CamelotWheel
from .models import CompatibilityLevel, CompatibleTracks, Track, TransitionAnalysis, TransitionQuality
from .set_analysis import SetAnalysis, base_score


def analyze_transitions(
    ordered_tracks: Sequence[Track],
    camelot: Optional[CamelotWheel] = None,
) -> TransitionAnalysis:
    """Transitions between consecutive keyed tracks with their base flow score."""
    analysis = SetAnalysis(ordered_tracks, camelot=camelot)
    qualities = analysis.qualities
    return TransitionAnalysis(
        transitions=analysis.transitions,
        score=base_score(qualities),
        total_transitions=len(qualities),
        quality_counts={q.value: c for q, c in Counter(qualities).items()},
    )


def _within_bpm(track: Track, reference: Track, bpm_range: Optional[float]) -> bool:
    if not bpm_range or bpm_range <= 0:
        return True
    if track.bpm is None or reference.bpm is None:
        return False
    return abs(track.bpm - reference.bpm) <= bpm_range


def find_compatible_tracks(
    track: Track,
    pool: Iterable[Track],
    bpm_range: Optional[float] = None,
    camelot: Optional[CamelotWheel] = None,
) -> CompatibleTracks:
    """
    Tracks from ``pool`` that mix harmonically out of ``track``, grouped by
    quality (perfect / smooth / energy_boost) and sorted by name.

    ``bpm_range`` restricts candidates to ±range BPM of the reference track.
    """
    if not track.has_key:
        return CompatibleTracks()

    camelot = camelot or CamelotWheel()
    groups = {
        "perfect": set(camelot.compatible_keys(track.key, CompatibilityLevel.SAME)),
        "smooth": set(camelot.compatible_keys(track.key, CompatibilityLevel.SMOOTH)),
        "energy_boost": set(camelot.compatible_keys(track.key, CompatibilityLevel.ENERGY_BOOST)),
    }

    candidates = [
        t for t in pool
        if t.id != track.id and t.has_key and _within_bpm(t, track, bpm_range)
    ]

    result = {}
    for name, keys in groups.items():
        matched = [t for t in candidates if t.key in keys]
        result[name] = sorted(matched, key=lambda t: t.name)
    return CompatibleTracks(**result)


def is_compatible(
    track: Track,
    other: Optional[Track],
    bpm_range: Optional[float] = None,
    camelot: Optional[CamelotWheel] = None,
) -> bool:
    """Key-compatible (not rough) and, if ``bpm_range`` is given, within that BPM distance."""
    if other is None or not track.has_key or not other.has_key:
        return False

    camelot = camelot or CamelotWheel()
    if camelot.transition_quality(track.key, other.key) == TransitionQuality.ROUGH:
        return False
    if bpm_range is None:
        return True
    if track.bpm is None or other.bpm is None:
        return False
    return abs(track.bpm - other.bpm) <= bpm_range

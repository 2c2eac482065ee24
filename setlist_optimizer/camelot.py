"""
Camelot Wheel Harmonic Mixing Rules

The wheel has 12 positions (1-12) and 2 rings: A (minor) and B (major).

Transition qualities:
  perfect       same key                    (8A -> 8A)
  smooth        adjacent +1 / -1            (8A -> 9A, 8A -> 7A)
                relative major/minor        (8A -> 8B)
  energy_boost  +7 positions, same ring     (8A -> 3A), directional
  rough         everything else

Per-transition scores reward variety: smooth and energy_boost score 3,
perfect scores 2, rough scores 0.
"""

import re
from typing import Dict, List, Optional

from .models import CamelotKey, CompatibilityLevel, TransitionQuality


_KEY_PATTERN = re.compile(r"(\d+)([AB])")

POSITIONS = range(1, 13)
MODES = ("A", "B")

TRANSITION_SCORES: Dict[TransitionQuality, int] = {
    TransitionQuality.SMOOTH: 3,
    TransitionQuality.ENERGY_BOOST: 3,
    TransitionQuality.PERFECT: 2,
    TransitionQuality.ROUGH: 0,
}
MAX_TRANSITION_SCORE = 3

INDICATORS: Dict[TransitionQuality, str] = {
    TransitionQuality.PERFECT: "🟢",
    TransitionQuality.SMOOTH: "🔵",
    TransitionQuality.ENERGY_BOOST: "⚡",
    TransitionQuality.ROUGH: "🟡",
}


class CamelotWheel:
    """Implements Camelot wheel logic for harmonic DJ mixing."""

    @staticmethod
    def parse_key(key: Optional[str]) -> Optional[CamelotKey]:
        """
        Parse a Camelot key string into (position, mode).
        '8A' -> (8, 'A'), '12B' -> (12, 'B')
        Returns None for anything that is not a complete, in-range key.
        """
        if not isinstance(key, str):
            return None
        match = _KEY_PATTERN.fullmatch(key)
        if not match:
            return None
        position = int(match.group(1))
        if position not in POSITIONS:
            return None
        return CamelotKey(position, match.group(2))

    @staticmethod
    def format_key(position: int, mode: str) -> str:
        return f"{position}{mode}"

    @staticmethod
    def wrap_position(position: int, delta: int = 0) -> int:
        """Move ``delta`` steps around the wheel, wrapping to 1-12."""
        return ((position - 1 + delta) % 12) + 1

    @staticmethod
    def position_difference(from_pos: int, to_pos: int) -> int:
        """Shortest circular distance between two positions (0-6)."""
        diff = (to_pos - from_pos) % 12
        return min(diff, 12 - diff)

    @staticmethod
    def opposite_mode(mode: str) -> str:
        return "B" if mode == "A" else "A"

    def compatible_keys(
        self,
        key: Optional[str],
        level: CompatibilityLevel = CompatibilityLevel.ALL,
    ) -> List[str]:
        """Keys reachable from ``key`` at the given compatibility level, deduplicated."""
        parsed = self.parse_key(key)
        if not parsed:
            return []

        level = CompatibilityLevel(level)
        position, mode = parsed
        same = [key]
        smooth = [
            self.format_key(self.wrap_position(position, -1), mode),
            self.format_key(self.wrap_position(position, 1), mode),
            self.format_key(position, self.opposite_mode(mode)),
        ]
        boost = [self.format_key(self.wrap_position(position, 7), mode)]

        if level is CompatibilityLevel.SAME:
            keys = same
        elif level is CompatibilityLevel.SMOOTH:
            keys = smooth
        elif level is CompatibilityLevel.ENERGY_BOOST:
            keys = boost
        else:
            keys = same + smooth + boost

        return list(dict.fromkeys(keys))

    def transition_quality(self, from_key: Optional[str], to_key: Optional[str]) -> TransitionQuality:
        """Classify the move from ``from_key`` to ``to_key``."""
        src = self.parse_key(from_key)
        dst = self.parse_key(to_key)
        if not src or not dst:
            return TransitionQuality.ROUGH

        if from_key == to_key:
            return TransitionQuality.PERFECT

        if src.mode == dst.mode:
            if (dst.position - src.position) % 12 == 7:
                return TransitionQuality.ENERGY_BOOST
            if self.position_difference(src.position, dst.position) == 1:
                return TransitionQuality.SMOOTH

        if src.position == dst.position and src.mode != dst.mode:
            return TransitionQuality.SMOOTH

        return TransitionQuality.ROUGH

    def transition_score(self, from_key: Optional[str], to_key: Optional[str]) -> int:
        return TRANSITION_SCORES[self.transition_quality(from_key, to_key)]

    @staticmethod
    def indicator(quality) -> str:
        """Display symbol for a quality; unknown values fall back to rough."""
        try:
            return INDICATORS[TransitionQuality(quality)]
        except ValueError:
            return INDICATORS[TransitionQuality.ROUGH]

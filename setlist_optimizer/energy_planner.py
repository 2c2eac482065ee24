"""
Energy Planner

Estimates a 0-100 energy value per track from BPM and key mode, and compares
a sequence of tracks against the ideal set arc:

  opening  0-10%   40 -> 50   ease in
  build   10-60%   50 -> 100  steady climb
  peak    60-70%   100        maximum energy
  drop    70-90%   100 -> 50  cool down
  closing 90-100%  50 -> 10   wind down
"""

from typing import List, Optional, Sequence

import numpy as np
from loguru import logger

from .camelot import CamelotWheel
from .models import EnergyFlowReport, Track

# BPM range for electronic music
MIN_BPM = 80
MAX_BPM = 160

DEFAULT_ENERGY = 50.0
BPM_ENERGY_SHARE = 80.0
MAJOR_KEY_BONUS = 20.0
MAX_MSE = 10_000.0  # 100 points difference, squared

# Arc breakpoints: (fraction of the set, target energy)
ARC_POSITIONS = (0.0, 0.1, 0.6, 0.7, 0.9, 1.0)
ARC_ENERGIES = (40.0, 50.0, 100.0, 100.0, 50.0, 10.0)

LARGE_JUMP = 30.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def arc_similarity(actual: Sequence[float], ideal: Sequence[float]) -> float:
    """Mean-squared-error between two energy sequences mapped to 0-100 (100 = identical)."""
    mse = sum((a - b) ** 2 for a, b in zip(actual, ideal)) / len(actual)
    return _clamp(100.0 * (1.0 - mse / MAX_MSE), 0.0, 100.0)


class EnergyPlanner:
    """Energy estimation and arc scoring for track sequences."""

    def __init__(self, camelot: Optional[CamelotWheel] = None):
        self.camelot = camelot or CamelotWheel()

    def estimate_energy(self, track: Track) -> float:
        """
        Energy 0-100 for a track.

        BPM maps linearly from [80, 160] onto [0, 80]; major keys (B ring) add
        a flat 20.  Tracks without a BPM get a neutral 50.
        """
        if track.bpm is None:
            return DEFAULT_ENERGY

        bpm_energy = _clamp(
            (track.bpm - MIN_BPM) / float(MAX_BPM - MIN_BPM) * BPM_ENERGY_SHARE,
            0.0,
            BPM_ENERGY_SHARE,
        )
        parsed = self.camelot.parse_key(track.key)
        mode_bonus = MAJOR_KEY_BONUS if parsed and parsed.mode == "B" else 0.0

        return _clamp(bpm_energy + mode_bonus, 0.0, 100.0)

    @staticmethod
    def ideal_energy_curve(track_count: int) -> List[float]:
        """Target energy for each of ``track_count`` positions."""
        if track_count <= 0:
            return []
        positions = np.arange(track_count, dtype=float) / track_count
        curve = np.interp(positions, ARC_POSITIONS, ARC_ENERGIES)
        return np.clip(curve, 0.0, 100.0).tolist()

    def energy_arc_score(self, ordered_tracks: Sequence[Track]) -> float:
        """How well the energy progression follows the ideal curve (0-100)."""
        if len(ordered_tracks) < 3:
            return 100.0  # Too short to judge

        actual = [self.estimate_energy(t) for t in ordered_tracks]
        return arc_similarity(actual, self.ideal_energy_curve(len(actual)))

    def analyze_energy_flow(self, ordered_tracks: Sequence[Track]) -> EnergyFlowReport:
        """Energy values, target arc and flow issues for a track sequence."""
        energies = [self.estimate_energy(t) for t in ordered_tracks]
        n = len(energies)

        issues = []
        for i in range(1, n):
            delta = abs(energies[i] - energies[i - 1])
            if delta > LARGE_JUMP:
                issues.append(f"Position {i + 1}: Large energy jump ({delta:.0f} points)")
        for i in range(2, n):
            if energies[i] == energies[i - 1] == energies[i - 2]:
                issues.append(f"Position {i + 1}: Plateau detected (3+ tracks at {energies[i]:.0f})")

        if issues:
            logger.debug(f"Energy flow: {len(issues)} issue(s) across {n} tracks")

        return EnergyFlowReport(
            energies=[round(e, 1) for e in energies],
            ideal_curve=[round(e, 1) for e in self.ideal_energy_curve(n)],
            arc_score=round(self.energy_arc_score(ordered_tracks), 1),
            average_energy=round(float(np.mean(energies)), 1) if energies else 0.0,
            issues=issues,
        )

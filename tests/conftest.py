"""Shared fixtures for the setlist optimizer tests."""

import itertools

import pytest

from setlist_optimizer.models import Track


@pytest.fixture
def make_track():
    """Factory: make_track(key="8A", bpm=128) with auto-numbered ids."""
    counter = itertools.count(1)

    def _make(key=None, bpm=128.0, name=None, duration=360, track_id=None):
        n = next(counter)
        return Track(
            id=track_id if track_id is not None else f"t{n}",
            name=name if name is not None else f"Track {n:02d}",
            bpm=bpm,
            key=key,
            duration=duration,
        )

    return _make


@pytest.fixture
def make_tracks(make_track):
    """Factory: make_tracks(["8A", "9A", None]) -> list of tracks with those keys."""

    def _make(keys, bpm=128.0):
        return [make_track(key=k, bpm=bpm) for k in keys]

    return _make

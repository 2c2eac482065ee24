"""Exceptions raised by the setlist optimizer."""

from typing import Any, Dict


class SetlistOptimizerError(ValueError):
    """Base class for errors that refuse an optimization call."""

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.__class__.__name__, "message": str(self)}


class TrackCountError(SetlistOptimizerError):
    """Track count outside the supported range. ``bound`` is "min" or "max"."""

    def __init__(self, track_count: int, bound: str, limit: int):
        self.track_count = track_count
        self.bound = bound
        self.limit = limit
        if bound == "min":
            message = f"Must have at least {limit} tracks (got {track_count})"
        else:
            message = f"Too large (max {limit} tracks, got {track_count})"
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(track_count=self.track_count, bound=self.bound, limit=self.limit)
        return data

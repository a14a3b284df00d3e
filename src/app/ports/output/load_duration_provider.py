from __future__ import annotations

from abc import ABC, abstractmethod


class ILoadDurationProvider(ABC):
    """Port supplying dwell ("load") durations at stops, in seconds."""

    @abstractmethod
    async def get_by_trip(self, stop_id: str, trip_id: str) -> float | None:
        """Realized dwell of the trip at the stop; None if it has not left it yet."""

    @abstractmethod
    async def get_average_by_route_pattern(
        self, stop_id: str, route_pattern_id: str
    ) -> float:
        """Historical mean dwell at the stop across the pattern's trips; 0.0 if none."""

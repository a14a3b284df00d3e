from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import TripStop


class ITripStopRepository(ABC):
    """Append-only store of trip stop observations."""

    @abstractmethod
    async def add(self, trip_stop: TripStop) -> None:
        raise NotImplementedError

    @abstractmethod
    async def list_by_trip(
        self, trip_id: str, *, stop_id: str | None = None
    ) -> list[TripStop]:
        """Observations of a trip, optionally narrowed to one stop, oldest first."""

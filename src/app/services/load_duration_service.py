from __future__ import annotations

import asyncio
from dataclasses import dataclass

from src.app.ports.output import (
    ILoadDurationProvider,
    ITripRepository,
    ITripStopRepository,
)
from src.domain.algorithms.dwell import (
    dwell_duration_s,
    has_departed,
    visited_stop_ids,
)


@dataclass(slots=True)
class LoadDurationService(ILoadDurationProvider):
    """Derives dwell durations from recorded trip stop observations."""

    trip_repository: ITripRepository
    trip_stop_repository: ITripStopRepository

    async def get_by_trip(self, stop_id: str, trip_id: str) -> float | None:
        observations = await self.trip_stop_repository.list_by_trip(trip_id)
        at_stop = [o for o in observations if o.stop_id == stop_id]
        return dwell_duration_s(
            at_stop, departed=has_departed(observations, stop_id)
        )

    async def get_average_by_route_pattern(
        self, stop_id: str, route_pattern_id: str
    ) -> float:
        trips = await self.trip_repository.list_by_route_pattern(route_pattern_id)
        if not trips:
            return 0.0

        durations = await asyncio.gather(
            *(self.get_by_trip(stop_id, trip.id) for trip in trips)
        )
        completed = [d for d in durations if d is not None]
        if not completed:
            return 0.0
        return sum(completed) / len(completed)


@dataclass(slots=True)
class TripPastStopsService:
    trip_stop_repository: ITripStopRepository

    async def list_stop_ids(self, trip_id: str) -> list[str]:
        """Stops the trip has already left, first visited first."""

        observations = await self.trip_stop_repository.list_by_trip(trip_id)
        return visited_stop_ids(observations)

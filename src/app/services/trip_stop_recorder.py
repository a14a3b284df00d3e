from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from src.app.ports.output import ITripStopRepository
from src.domain.models import TripStop


@dataclass(slots=True)
class TripStopRecorder:
    """Writes trip stop observations.

    Heartbeats repeat the same (trip, stop) many times; every one is kept and
    collapsing them into a dwell interval is left to the readers.
    """

    trip_stop_repository: ITripStopRepository

    async def record(
        self, trip_id: str, stop_id: str, seen_at: datetime, doors_open: bool
    ) -> TripStop:
        trip_stop = TripStop(
            trip_id=trip_id,
            stop_id=stop_id,
            seen_at=seen_at,
            doors_open=bool(doors_open),
        )
        await self.trip_stop_repository.add(trip_stop)
        return trip_stop

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from src.app.ports.output import ILoadDurationProvider, ITripRepository
from src.domain.algorithms.congestion import weighted_congestion_rate
from src.domain.exceptions import NoSuchEntityError
from src.domain.models import LoadDurationSample

from .load_duration_service import TripPastStopsService

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CongestionRateService:
    """Live congestion rate of a trip.

    Recomputed on every call; nothing is cached or persisted.
    """

    trip_repository: ITripRepository
    past_stops: TripPastStopsService
    load_durations: ILoadDurationProvider

    async def get_congestion_rate(self, trip_id: str) -> float:
        """Return the recency-weighted actual/average dwell ratio.

        Raises InvalidStateError if no weighted average load duration exists,
        including for trips that have not been recorded yet.
        """

        samples = await self.get_load_durations(trip_id)
        return weighted_congestion_rate(samples)

    async def get_load_durations(self, trip_id: str) -> list[LoadDurationSample]:
        """Per-stop load durations, first visited stop first.

        Best effort: any failure degrades to an empty list.
        """

        try:
            trip, stop_ids = await asyncio.gather(
                self.trip_repository.get_by_id(trip_id),
                self.past_stops.list_stop_ids(trip_id),
            )

            pairs = await asyncio.gather(
                *(
                    asyncio.gather(
                        self.load_durations.get_by_trip(stop_id, trip_id),
                        self.load_durations.get_average_by_route_pattern(
                            stop_id, trip.route_pattern_id
                        ),
                    )
                    for stop_id in stop_ids
                )
            )
        except NoSuchEntityError:
            # Trip isn't recorded yet, which is ok.
            return []
        except Exception:
            logger.exception("Failed to load stop durations for trip %s", trip_id)
            return []

        return [
            LoadDurationSample(actual_s=actual, average_s=average)
            for actual, average in pairs
        ]

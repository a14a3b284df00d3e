from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date


class IScheduleResolver(ABC):
    """Port for matching a realtime departure to the published schedule.

    Both lookups raise ScheduleMatchNotFoundError when no scheduled trip has
    the given route, direction, service date and departure time.
    """

    @abstractmethod
    async def find_route_pattern_id(
        self, route_id: str, direction_id: int, service_date: date, departure_s: int
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    async def find_trip_id(
        self, route_id: str, direction_id: int, service_date: date, departure_s: int
    ) -> str:
        raise NotImplementedError

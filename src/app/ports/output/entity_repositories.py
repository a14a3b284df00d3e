from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import RoutePattern, Stop, Trip


class IRoutePatternRepository(ABC):
    """Persistence port for route patterns and their stop associations."""

    @abstractmethod
    async def get_by_id(self, route_pattern_id: str) -> RoutePattern:
        """Return the route pattern or raise NoSuchEntityError."""

    @abstractmethod
    async def create_by_id(self, route_pattern_id: str) -> RoutePattern:
        """Create an empty route pattern or raise EntityAlreadyExistsError."""

    @abstractmethod
    async def associate_stop(self, route_pattern_id: str, stop_id: str) -> None:
        """Append a stop to the pattern; a no-op if it is already associated."""


class IStopRepository(ABC):
    """Persistence port for stops."""

    @abstractmethod
    async def get_by_id(self, stop_id: str) -> Stop:
        """Return the stop or raise NoSuchEntityError."""

    @abstractmethod
    async def create_by_id(self, stop_id: str) -> Stop:
        """Create a bare stop or raise EntityAlreadyExistsError."""


class ITripRepository(ABC):
    """Persistence port for trips."""

    @abstractmethod
    async def get_by_id(self, trip_id: str) -> Trip:
        """Return the trip or raise NoSuchEntityError."""

    @abstractmethod
    async def create_by_id(self, trip_id: str, *, route_pattern_id: str) -> Trip:
        """Create a trip bound to its route pattern or raise EntityAlreadyExistsError."""

    @abstractmethod
    async def list_by_route_pattern(self, route_pattern_id: str) -> list[Trip]:
        raise NotImplementedError

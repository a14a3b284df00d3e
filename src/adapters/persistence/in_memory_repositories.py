from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from src.app.ports.output import (
    IRoutePatternRepository,
    IStopRepository,
    ITripRepository,
    ITripStopRepository,
)
from src.domain.exceptions import EntityAlreadyExistsError, NoSuchEntityError
from src.domain.models import RoutePattern, Stop, Trip, TripStop


@dataclass(slots=True)
class InMemoryRoutePatternRepository(IRoutePatternRepository):
    """Process-local store with the same id-uniqueness rules as DynamoDB."""

    items: dict[str, RoutePattern] = field(default_factory=dict)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    async def get_by_id(self, route_pattern_id: str) -> RoutePattern:
        try:
            return self.items[route_pattern_id]
        except KeyError:
            raise NoSuchEntityError(
                f"Route pattern {route_pattern_id} not found"
            ) from None

    async def create_by_id(self, route_pattern_id: str) -> RoutePattern:
        async with self._lock:
            if route_pattern_id in self.items:
                raise EntityAlreadyExistsError(
                    f"Route pattern {route_pattern_id} already exists"
                )
            pattern = RoutePattern(id=route_pattern_id)
            self.items[route_pattern_id] = pattern
            return pattern

    async def associate_stop(self, route_pattern_id: str, stop_id: str) -> None:
        async with self._lock:
            pattern = await self.get_by_id(route_pattern_id)
            self.items[route_pattern_id] = pattern.with_stop(stop_id)


@dataclass(slots=True)
class InMemoryStopRepository(IStopRepository):
    items: dict[str, Stop] = field(default_factory=dict)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    async def get_by_id(self, stop_id: str) -> Stop:
        try:
            return self.items[stop_id]
        except KeyError:
            raise NoSuchEntityError(f"Stop {stop_id} not found") from None

    async def create_by_id(self, stop_id: str) -> Stop:
        async with self._lock:
            if stop_id in self.items:
                raise EntityAlreadyExistsError(f"Stop {stop_id} already exists")
            stop = Stop(id=stop_id)
            self.items[stop_id] = stop
            return stop


@dataclass(slots=True)
class InMemoryTripRepository(ITripRepository):
    items: dict[str, Trip] = field(default_factory=dict)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    async def get_by_id(self, trip_id: str) -> Trip:
        try:
            return self.items[trip_id]
        except KeyError:
            raise NoSuchEntityError(f"Trip {trip_id} not found") from None

    async def create_by_id(self, trip_id: str, *, route_pattern_id: str) -> Trip:
        async with self._lock:
            if trip_id in self.items:
                raise EntityAlreadyExistsError(f"Trip {trip_id} already exists")
            trip = Trip(id=trip_id, route_pattern_id=route_pattern_id)
            self.items[trip_id] = trip
            return trip

    async def list_by_route_pattern(self, route_pattern_id: str) -> list[Trip]:
        return [t for t in self.items.values() if t.route_pattern_id == route_pattern_id]


@dataclass(slots=True)
class InMemoryTripStopRepository(ITripStopRepository):
    items: list[TripStop] = field(default_factory=list)

    async def add(self, trip_stop: TripStop) -> None:
        self.items.append(trip_stop)

    async def list_by_trip(
        self, trip_id: str, *, stop_id: str | None = None
    ) -> list[TripStop]:
        out = [
            ts
            for ts in self.items
            if ts.trip_id == trip_id and (stop_id is None or ts.stop_id == stop_id)
        ]
        out.sort(key=lambda ts: ts.seen_at)
        return out

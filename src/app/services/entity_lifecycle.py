from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from src.app.ports.output import (
    IRoutePatternRepository,
    IStopRepository,
    ITripRepository,
)
from src.domain.exceptions import EntityAlreadyExistsError, NoSuchEntityError
from src.domain.models import RoutePattern, Stop, Trip

logger = logging.getLogger(__name__)


async def get_or_create(repository: Any, entity_id: str, **attributes: Any) -> Any:
    """Fetch an entity by id, creating it on a miss.

    Concurrent callers may both miss the lookup; the loser of the creation
    race gets EntityAlreadyExistsError from the store and re-fetches the
    winner's record instead.
    """

    try:
        return await repository.get_by_id(entity_id)
    except NoSuchEntityError:
        pass

    try:
        return await repository.create_by_id(entity_id, **attributes)
    except EntityAlreadyExistsError:
        logger.debug("Lost creation race for %s, re-fetching", entity_id)
        return await repository.get_by_id(entity_id)


async def ensure_stop_associated(
    repository: IRoutePatternRepository, route_pattern: RoutePattern, stop: Stop
) -> RoutePattern:
    """Link a stop to a route pattern unless it already is.

    The store write is itself conditional, so a concurrent duplicate is a no-op.
    """

    if route_pattern.has_stop(stop.id):
        return route_pattern

    await repository.associate_stop(route_pattern.id, stop.id)
    return route_pattern.with_stop(stop.id)


@dataclass(slots=True)
class EntityLifecycleService:
    route_pattern_repository: IRoutePatternRepository
    stop_repository: IStopRepository
    trip_repository: ITripRepository

    async def get_or_create_route_pattern(self, route_pattern_id: str) -> RoutePattern:
        return await get_or_create(self.route_pattern_repository, route_pattern_id)

    async def get_or_create_stop(self, stop_id: str) -> Stop:
        return await get_or_create(self.stop_repository, stop_id)

    async def get_or_create_trip(self, trip_id: str, *, route_pattern_id: str) -> Trip:
        return await get_or_create(
            self.trip_repository, trip_id, route_pattern_id=route_pattern_id
        )

    async def associate_stop(self, route_pattern: RoutePattern, stop: Stop) -> RoutePattern:
        return await ensure_stop_associated(
            self.route_pattern_repository, route_pattern, stop
        )

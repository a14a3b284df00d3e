from .entity_repositories import (
    IRoutePatternRepository,
    IStopRepository,
    ITripRepository,
)
from .load_duration_provider import ILoadDurationProvider
from .position_feed import IPositionFeed
from .schedule_resolver import IScheduleResolver
from .trip_stop_repository import ITripStopRepository

__all__ = [
    "ILoadDurationProvider",
    "IPositionFeed",
    "IRoutePatternRepository",
    "IScheduleResolver",
    "IStopRepository",
    "ITripRepository",
    "ITripStopRepository",
]

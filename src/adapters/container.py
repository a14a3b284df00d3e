from __future__ import annotations

from dataclasses import dataclass

from src.adapters.persistence import (
    DynamoDbRoutePatternRepository,
    DynamoDbStopRepository,
    DynamoDbTripRepository,
    DynamoDbTripStopRepository,
    InMemoryRoutePatternRepository,
    InMemoryStopRepository,
    InMemoryTripRepository,
    InMemoryTripStopRepository,
)
from src.adapters.schedule import DigitransitScheduleResolver, GtfsScheduleResolver
from src.app.ports.output import (
    IRoutePatternRepository,
    IScheduleResolver,
    IStopRepository,
    ITripRepository,
    ITripStopRepository,
)
from src.app.services.congestion_rate_service import CongestionRateService
from src.app.services.entity_lifecycle import EntityLifecycleService
from src.app.services.load_duration_service import (
    LoadDurationService,
    TripPastStopsService,
)
from src.app.services.position_ingestion_service import PositionIngestionService
from src.app.services.trip_stop_recorder import TripStopRecorder
from src.config import FeedRuntimeConfig


@dataclass(frozen=True, slots=True)
class Repositories:
    route_patterns: IRoutePatternRepository
    stops: IStopRepository
    trips: ITripRepository
    trip_stops: ITripStopRepository


def build_repositories(config: FeedRuntimeConfig) -> Repositories:
    if config.persistence_backend == "memory":
        return Repositories(
            route_patterns=InMemoryRoutePatternRepository(),
            stops=InMemoryStopRepository(),
            trips=InMemoryTripRepository(),
            trip_stops=InMemoryTripStopRepository(),
        )
    if config.persistence_backend != "dynamodb":
        raise ValueError(f"Unknown PERSISTENCE_BACKEND: {config.persistence_backend}")

    return Repositories(
        route_patterns=DynamoDbRoutePatternRepository(),
        stops=DynamoDbStopRepository(),
        trips=DynamoDbTripRepository(),
        trip_stops=DynamoDbTripStopRepository(),
    )


def build_schedule_resolver(config: FeedRuntimeConfig) -> IScheduleResolver:
    if config.schedule_source == "gtfs":
        return GtfsScheduleResolver(id_prefix=config.id_prefix)
    if config.schedule_source != "digitransit":
        raise ValueError(f"Unknown SCHEDULE_SOURCE: {config.schedule_source}")
    return DigitransitScheduleResolver()


def build_ingestion_service(
    config: FeedRuntimeConfig, repositories: Repositories
) -> PositionIngestionService:
    return PositionIngestionService(
        schedule_resolver=build_schedule_resolver(config),
        lifecycle=EntityLifecycleService(
            route_pattern_repository=repositories.route_patterns,
            stop_repository=repositories.stops,
            trip_repository=repositories.trips,
        ),
        recorder=TripStopRecorder(trip_stop_repository=repositories.trip_stops),
        id_prefix=config.id_prefix,
        feed_timezone=config.timezone,
    )


def build_congestion_rate_service(repositories: Repositories) -> CongestionRateService:
    return CongestionRateService(
        trip_repository=repositories.trips,
        past_stops=TripPastStopsService(trip_stop_repository=repositories.trip_stops),
        load_durations=LoadDurationService(
            trip_repository=repositories.trips,
            trip_stop_repository=repositories.trip_stops,
        ),
    )

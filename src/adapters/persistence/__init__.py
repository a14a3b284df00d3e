from .dynamodb_entity_repositories import (
    DynamoDbRoutePatternRepository,
    DynamoDbStopRepository,
    DynamoDbTripRepository,
)
from .dynamodb_trip_stop_repository import DynamoDbTripStopRepository
from .in_memory_repositories import (
    InMemoryRoutePatternRepository,
    InMemoryStopRepository,
    InMemoryTripRepository,
    InMemoryTripStopRepository,
)

__all__ = [
    "DynamoDbRoutePatternRepository",
    "DynamoDbStopRepository",
    "DynamoDbTripRepository",
    "DynamoDbTripStopRepository",
    "InMemoryRoutePatternRepository",
    "InMemoryStopRepository",
    "InMemoryTripRepository",
    "InMemoryTripStopRepository",
]

from .position import FeedMessage, LoadDurationSample, PositionEvent
from .route_pattern import RoutePattern
from .stop import GeoPoint, Stop
from .trip import Trip, TripStop

__all__ = [
    "FeedMessage",
    "GeoPoint",
    "LoadDurationSample",
    "PositionEvent",
    "RoutePattern",
    "Stop",
    "Trip",
    "TripStop",
]

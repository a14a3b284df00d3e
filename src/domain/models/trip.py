from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Trip:
    id: str
    route_pattern_id: str


@dataclass(frozen=True, slots=True)
class TripStop:
    """One sighting of a trip's vehicle at (or approaching) a stop.

    Repeated heartbeats for the same stop each produce their own record.
    """

    trip_id: str
    stop_id: str
    seen_at: datetime
    doors_open: bool = False

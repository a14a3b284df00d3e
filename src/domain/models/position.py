from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class FeedMessage:
    """A raw message as read from the positioning feed."""

    topic: str
    payload: bytes | str | dict[str, Any]


@dataclass(frozen=True, slots=True)
class PositionEvent:
    """A decoded vehicle position event.

    Ids are still in the feed's own encoding; the codecs translate them to
    routing ids on demand.
    """

    event_type: str
    route_id: str
    next_stop_id: str
    direction: str
    seen_at: datetime
    operating_day: date
    start_time: str
    doors_open: bool = False


@dataclass(frozen=True, slots=True)
class LoadDurationSample:
    """Dwell seconds of one trip at one stop next to the stop's historical mean."""

    actual_s: float | None
    average_s: float

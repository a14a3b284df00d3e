"""Translation of high-frequency positioning (HFP) feed encodings.

Topic layout (v2), split on "/":

    /hfp/v2/journey/<temporal>/<event_type>/<mode>/<operator>/<vehicle>/
    <route>/<direction>/<headsign>/<start>/<next_stop>/<geohash_level>/...

The positions of the event type, route and next stop segments are a contract
with the feed and must not be changed.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Mapping
from zoneinfo import ZoneInfo

from src.domain.exceptions import MalformedPositionEventError
from src.domain.models import PositionEvent

EVENT_TYPE_INDEX = 5
ROUTE_ID_INDEX = 9
NEXT_STOP_ID_INDEX = 13

END_OF_LINE = "EOL"
SECONDS_PER_DAY = 86_400

DEFAULT_ID_PREFIX = "HSL"
DEFAULT_TIMEZONE = "Europe/Helsinki"

_FEED_DIRECTIONS = {"1", "2"}
_FALSE_STRINGS = {"", "0", "false", "no", "off"}


@dataclass(frozen=True, slots=True)
class TopicFields:
    event_type: str
    route_id: str
    next_stop_id: str


def parse_topic(topic: str) -> TopicFields:
    parts = topic.split("/")
    if len(parts) <= NEXT_STOP_ID_INDEX:
        raise MalformedPositionEventError(f"Topic has too few segments: {topic!r}")

    return TopicFields(
        event_type=parts[EVENT_TYPE_INDEX],
        route_id=parts[ROUTE_ID_INDEX],
        next_stop_id=parts[NEXT_STOP_ID_INDEX],
    )


def is_end_of_line(next_stop_id: str) -> bool:
    """True when the vehicle has completed its trip and has no next stop."""

    value = (next_stop_id or "").strip()
    return not value or value == END_OF_LINE


def parse_payload(
    payload: bytes | str | Mapping[str, Any], event_type: str
) -> Mapping[str, Any]:
    """Return the event body, keyed in the payload by the uppercased event type."""

    if isinstance(payload, Mapping):
        decoded: Any = payload
    else:
        try:
            raw = payload.decode("utf-8") if isinstance(payload, bytes) else payload
            decoded = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedPositionEventError(f"Payload is not JSON: {exc}") from exc

    if not isinstance(decoded, Mapping):
        raise MalformedPositionEventError("Payload is not a JSON object")

    body = decoded.get(event_type.upper()) or {}
    if not isinstance(body, Mapping):
        raise MalformedPositionEventError(
            f"Payload body for {event_type.upper()} is not an object"
        )
    return body


def convert_direction_id(raw: str | int) -> int:
    # Feed uses 1/2, the routing API 0/1.
    return int(raw) - 1


def convert_stop_id(raw: str, prefix: str = DEFAULT_ID_PREFIX) -> str:
    return f"{prefix}:{raw}"


def convert_route_id(raw: str, prefix: str = DEFAULT_ID_PREFIX) -> str:
    return f"{prefix}:{raw}"


def departure_time_to_seconds(raw: str, roll_over_to_next_day: bool = False) -> int:
    """Convert "HH:MM" or "HH:MM:SS" into seconds since midnight."""

    parts = [int(p) for p in raw.strip().split(":")]
    hh, mm, ss = (parts + [0, 0])[:3]
    seconds = hh * 3600 + mm * 60 + ss
    if roll_over_to_next_day:
        seconds += SECONDS_PER_DAY
    return seconds


def should_roll_over_to_next_day(
    operating_day: date, seen_at: datetime, tz: tzinfo | str = DEFAULT_TIMEZONE
) -> bool:
    """True when the vehicle is seen on a later local date than its operating day."""

    zone = ZoneInfo(tz) if isinstance(tz, str) else tz
    if seen_at.tzinfo is None:
        seen_at = seen_at.replace(tzinfo=timezone.utc)
    return seen_at.astimezone(zone).date() > operating_day


def scheduled_departure_s(
    event: PositionEvent, tz: tzinfo | str = DEFAULT_TIMEZONE
) -> int:
    return departure_time_to_seconds(
        event.start_time,
        should_roll_over_to_next_day(event.operating_day, event.seen_at, tz),
    )


def parse_timestamp(raw: str) -> datetime:
    value = raw.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _doors_open(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() not in _FALSE_STRINGS
    return bool(raw)


def decode_position_event(
    fields: TopicFields, payload: bytes | str | Mapping[str, Any]
) -> PositionEvent:
    body = parse_payload(payload, fields.event_type)

    missing = [k for k in ("dir", "tst", "oday", "start") if body.get(k) in (None, "")]
    if missing:
        raise MalformedPositionEventError(
            f"Payload is missing fields: {', '.join(missing)}"
        )

    direction = str(body["dir"]).strip()
    if direction not in _FEED_DIRECTIONS:
        raise MalformedPositionEventError(f"Unknown direction: {direction!r}")

    start_time = str(body["start"]).strip()
    try:
        seen_at = parse_timestamp(str(body["tst"]))
        operating_day = date.fromisoformat(str(body["oday"]).strip())
        departure_time_to_seconds(start_time)
    except ValueError as exc:
        raise MalformedPositionEventError(f"Invalid payload value: {exc}") from exc

    return PositionEvent(
        event_type=fields.event_type,
        route_id=fields.route_id,
        next_stop_id=fields.next_stop_id,
        direction=direction,
        seen_at=seen_at,
        operating_day=operating_day,
        start_time=start_time,
        doors_open=_doors_open(body.get("drst")),
    )

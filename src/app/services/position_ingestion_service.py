from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Mapping, TypeVar

from src.app.ports.output import IScheduleResolver
from src.domain.algorithms.hfp_codecs import (
    DEFAULT_ID_PREFIX,
    DEFAULT_TIMEZONE,
    convert_direction_id,
    convert_route_id,
    convert_stop_id,
    decode_position_event,
    is_end_of_line,
    parse_topic,
    scheduled_departure_s,
)
from src.domain.exceptions import MalformedPositionEventError, NoSuchEntityError
from src.domain.models import FeedMessage, RoutePattern, Stop, TripStop

from .entity_lifecycle import EntityLifecycleService
from .trip_stop_recorder import TripStopRecorder

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class PositionIngestionService:
    """Turns one raw feed message into a recorded trip stop.

    Steps run strictly in order since each one feeds the next. Any failure is
    logged and drops only the message at hand; `handle` never raises.
    """

    schedule_resolver: IScheduleResolver
    lifecycle: EntityLifecycleService
    recorder: TripStopRecorder
    id_prefix: str = DEFAULT_ID_PREFIX
    feed_timezone: str = DEFAULT_TIMEZONE

    async def handle_message(self, message: FeedMessage) -> TripStop | None:
        return await self.handle(message.topic, message.payload)

    async def handle(
        self, topic: str, payload: bytes | str | Mapping[str, Any]
    ) -> TripStop | None:
        try:
            fields = parse_topic(topic)
        except MalformedPositionEventError as exc:
            logger.warning("Failed to parse vehicle position topic: %s", exc)
            return None

        if is_end_of_line(fields.next_stop_id):
            return None

        try:
            event = decode_position_event(fields, payload)
        except MalformedPositionEventError as exc:
            logger.warning(
                "Failed to parse vehicle position payload on %s: %s", topic, exc
            )
            return None

        route_id = convert_route_id(event.route_id, self.id_prefix)
        direction_id = convert_direction_id(event.direction)
        departure_s = scheduled_departure_s(event, self.feed_timezone)

        route_pattern_id = await self._step(
            "find vehicle position route pattern ID",
            topic,
            self.schedule_resolver.find_route_pattern_id(
                route_id, direction_id, event.operating_day, departure_s
            ),
        )
        if route_pattern_id is None:
            return None

        route_pattern = await self._step(
            "get or create route pattern",
            topic,
            self.lifecycle.get_or_create_route_pattern(route_pattern_id),
        )
        if route_pattern is None:
            return None

        stop = await self._step(
            "get or create next stop",
            topic,
            self._get_or_create_associated_stop(
                route_pattern, convert_stop_id(event.next_stop_id, self.id_prefix)
            ),
        )
        if stop is None:
            return None

        trip_id = await self._step(
            "find vehicle position trip ID",
            topic,
            self.schedule_resolver.find_trip_id(
                route_id, direction_id, event.operating_day, departure_s
            ),
        )
        if trip_id is None:
            return None

        trip = await self._step(
            "get or create trip",
            topic,
            self.lifecycle.get_or_create_trip(
                trip_id, route_pattern_id=route_pattern.id
            ),
        )
        if trip is None:
            return None

        return await self._step(
            "record trip stop",
            topic,
            self.recorder.record(trip.id, stop.id, event.seen_at, event.doors_open),
        )

    async def _get_or_create_associated_stop(
        self, route_pattern: RoutePattern, stop_id: str
    ) -> Stop:
        stop = await self.lifecycle.get_or_create_stop(stop_id)
        await self.lifecycle.associate_stop(route_pattern, stop)
        return stop

    @staticmethod
    async def _step(description: str, topic: str, awaitable: Awaitable[T]) -> T | None:
        try:
            return await awaitable
        except NoSuchEntityError as exc:
            # Realtime feeds carry unscheduled extras that never match.
            logger.info("Failed to %s for %s: %s", description, topic, exc)
        except Exception:
            logger.exception("Failed to %s for %s", description, topic)
        return None

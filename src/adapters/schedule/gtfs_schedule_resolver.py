from __future__ import annotations

import asyncio
import csv
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Iterator

from src.app.ports.output import IScheduleResolver
from src.domain.exceptions import ScheduleMatchNotFoundError

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _parse_gtfs_time_to_seconds(raw: str) -> int:
    # GTFS time can be HH:MM:SS with HH possibly > 24.
    hh, mm, ss = raw.strip().split(":")
    return int(hh) * 3600 + int(mm) * 60 + int(ss)


def _parse_gtfs_date(raw: str) -> date:
    return datetime.strptime(raw.strip(), "%Y%m%d").date()


def _rows(path: Path) -> Iterator[dict[str, str]]:
    with path.open("r", encoding="utf-8-sig", newline="") as fp:
        yield from csv.DictReader(fp)


@dataclass(frozen=True, slots=True)
class ScheduledTrip:
    trip_id: str
    route_id: str
    direction_id: int
    service_id: str
    shape_id: str | None
    departure_s: int


@dataclass(frozen=True, slots=True)
class _ServiceCalendar:
    weekdays: tuple[bool, ...]
    start: date
    end: date


@dataclass(slots=True)
class GtfsSchedule:
    trips_by_route_direction: dict[tuple[str, int], list[ScheduledTrip]]
    calendars: dict[str, _ServiceCalendar]
    added_dates: dict[str, set[date]]
    removed_dates: dict[str, set[date]]

    def is_active(self, service_id: str, service_date: date) -> bool:
        if service_date in self.removed_dates.get(service_id, set()):
            return False
        if service_date in self.added_dates.get(service_id, set()):
            return True
        cal = self.calendars.get(service_id)
        if cal is None:
            return False
        return cal.start <= service_date <= cal.end and cal.weekdays[service_date.weekday()]


def load_gtfs_schedule(base: Path) -> GtfsSchedule:
    """Load the subset of a GTFS directory needed to match departures."""

    first_departure: dict[str, tuple[int, int]] = {}
    for row in _rows(base / "stop_times.txt"):
        trip_id = (row.get("trip_id") or "").strip()
        raw_dep = (row.get("departure_time") or "").strip()
        if not trip_id or not raw_dep:
            continue
        seq = int(row.get("stop_sequence") or 0)
        prev = first_departure.get(trip_id)
        if prev is None or seq < prev[0]:
            first_departure[trip_id] = (seq, _parse_gtfs_time_to_seconds(raw_dep))

    trips_by_route_direction: dict[tuple[str, int], list[ScheduledTrip]] = {}
    for row in _rows(base / "trips.txt"):
        trip_id = (row.get("trip_id") or "").strip()
        route_id = (row.get("route_id") or "").strip()
        if not trip_id or not route_id or trip_id not in first_departure:
            continue
        trip = ScheduledTrip(
            trip_id=trip_id,
            route_id=route_id,
            direction_id=int(row.get("direction_id") or 0),
            service_id=(row.get("service_id") or "").strip(),
            shape_id=(row.get("shape_id") or "").strip() or None,
            departure_s=first_departure[trip_id][1],
        )
        trips_by_route_direction.setdefault((route_id, trip.direction_id), []).append(
            trip
        )

    for trips in trips_by_route_direction.values():
        trips.sort(key=lambda t: t.departure_s)

    calendars: dict[str, _ServiceCalendar] = {}
    calendar_path = base / "calendar.txt"
    if calendar_path.exists():
        for row in _rows(calendar_path):
            service_id = (row.get("service_id") or "").strip()
            if not service_id:
                continue
            calendars[service_id] = _ServiceCalendar(
                weekdays=tuple((row.get(d) or "0").strip() == "1" for d in _WEEKDAYS),
                start=_parse_gtfs_date(row["start_date"]),
                end=_parse_gtfs_date(row["end_date"]),
            )

    added: dict[str, set[date]] = {}
    removed: dict[str, set[date]] = {}
    dates_path = base / "calendar_dates.txt"
    if dates_path.exists():
        for row in _rows(dates_path):
            service_id = (row.get("service_id") or "").strip()
            if not service_id:
                continue
            target = added if (row.get("exception_type") or "").strip() == "1" else removed
            target.setdefault(service_id, set()).add(_parse_gtfs_date(row["date"]))

    return GtfsSchedule(
        trips_by_route_direction=trips_by_route_direction,
        calendars=calendars,
        added_dates=added,
        removed_dates=removed,
    )


@dataclass(slots=True)
class GtfsScheduleResolver(IScheduleResolver):
    """Matches realtime departures against a static GTFS feed.

    GTFS has no route pattern entity, so the pattern id is derived from
    route, direction and shape.

    Env vars:
      - GTFS_PATH: directory with trips.txt, stop_times.txt, calendar*.txt
      - GTFS_MATCH_TOLERANCE_S: allowed departure mismatch (default 0)
    """

    base_path: str | Path | None = None
    id_prefix: str | None = "HSL"
    tolerance_s: int | None = None

    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _schedule: GtfsSchedule | None = None

    def _base(self) -> Path:
        value = self.base_path or os.getenv("GTFS_PATH") or "data/gtfs"
        return Path(value)

    def _tolerance(self) -> int:
        if self.tolerance_s is not None:
            return self.tolerance_s
        return int(os.getenv("GTFS_MATCH_TOLERANCE_S") or 0)

    async def _load(self) -> GtfsSchedule:
        async with self._lock:
            if self._schedule is None:
                self._schedule = await asyncio.to_thread(load_gtfs_schedule, self._base())
            return self._schedule

    def _strip(self, route_id: str) -> str:
        prefix = f"{self.id_prefix}:" if self.id_prefix else ""
        if prefix and route_id.startswith(prefix):
            return route_id[len(prefix) :]
        return route_id

    def _qualify(self, value: str) -> str:
        return f"{self.id_prefix}:{value}" if self.id_prefix else value

    async def _match(
        self, route_id: str, direction_id: int, service_date: date, departure_s: int
    ) -> ScheduledTrip:
        schedule = await self._load()
        candidates = schedule.trips_by_route_direction.get(
            (self._strip(route_id), direction_id), []
        )
        tolerance = self._tolerance()

        best: ScheduledTrip | None = None
        for trip in candidates:
            diff = abs(trip.departure_s - departure_s)
            if diff > tolerance or not schedule.is_active(trip.service_id, service_date):
                continue
            if best is None or diff < abs(best.departure_s - departure_s):
                best = trip

        if best is None:
            raise ScheduleMatchNotFoundError(
                f"No scheduled trip for route {route_id} direction {direction_id} "
                f"on {service_date.isoformat()} at {departure_s}s"
            )
        return best

    async def find_route_pattern_id(
        self, route_id: str, direction_id: int, service_date: date, departure_s: int
    ) -> str:
        trip = await self._match(route_id, direction_id, service_date, departure_s)
        return self._qualify(
            f"{trip.route_id}:{trip.direction_id}:{trip.shape_id or 'default'}"
        )

    async def find_trip_id(
        self, route_id: str, direction_id: int, service_date: date, departure_s: int
    ) -> str:
        trip = await self._match(route_id, direction_id, service_date, departure_s)
        return self._qualify(trip.trip_id)

from __future__ import annotations

import asyncio
import json
from datetime import date
from pathlib import Path

import httpx
import pytest

from src.adapters.schedule import DigitransitScheduleResolver, GtfsScheduleResolver
from src.domain.exceptions import NoSuchEntityError, ScheduleMatchNotFoundError


def _write(path: Path, name: str, rows: list[str]) -> None:
    (path / name).write_text("\n".join(rows) + "\n", encoding="utf-8")


@pytest.fixture()
def gtfs_dir(tmp_path: Path) -> Path:
    _write(
        tmp_path,
        "trips.txt",
        [
            "route_id,service_id,trip_id,direction_id,shape_id",
            "1055,WEEKDAY,1055_A,1,1055_s1",
            "1055,WEEKDAY,1055_B,1,1055_s1",
            "1055,SUNDAY,1055_C,1,1055_s2",
            "1055,WEEKDAY,1055_D,0,",
        ],
    )
    _write(
        tmp_path,
        "stop_times.txt",
        [
            "trip_id,arrival_time,departure_time,stop_id,stop_sequence",
            "1055_A,12:30:00,12:30:00,1040129,1",
            "1055_A,12:35:00,12:35:00,1040130,2",
            "1055_B,24:10:00,24:10:00,1040129,1",
            "1055_C,12:30:00,12:30:00,1040129,1",
            "1055_D,12:30:00,12:30:00,1040130,1",
        ],
    )
    _write(
        tmp_path,
        "calendar.txt",
        [
            "service_id,monday,tuesday,wednesday,thursday,friday,saturday,sunday,start_date,end_date",
            "WEEKDAY,1,1,1,1,1,0,0,20190101,20191231",
            "SUNDAY,0,0,0,0,0,0,1,20190101,20191231",
        ],
    )
    _write(
        tmp_path,
        "calendar_dates.txt",
        [
            "service_id,date,exception_type",
            "WEEKDAY,20190102,2",
            "SUNDAY,20190102,1",
        ],
    )
    return tmp_path


def test_gtfs_resolver_matches_active_departure(gtfs_dir: Path) -> None:
    resolver = GtfsScheduleResolver(base_path=gtfs_dir)
    tuesday = date(2019, 1, 1)

    async def scenario() -> tuple[str, str]:
        return (
            await resolver.find_trip_id("HSL:1055", 1, tuesday, 45_000),
            await resolver.find_route_pattern_id("HSL:1055", 1, tuesday, 45_000),
        )

    trip_id, pattern_id = asyncio.run(scenario())

    assert trip_id == "HSL:1055_A"
    assert pattern_id == "HSL:1055:1:1055_s1"


def test_gtfs_resolver_handles_after_midnight_and_exceptions(gtfs_dir: Path) -> None:
    resolver = GtfsScheduleResolver(base_path=gtfs_dir, id_prefix=None)

    # Departures past midnight keep counting from the service day.
    assert (
        asyncio.run(resolver.find_trip_id("1055", 1, date(2019, 1, 1), 87_000))
        == "1055_B"
    )
    # WEEKDAY removed and SUNDAY added on Jan 2nd.
    assert (
        asyncio.run(resolver.find_trip_id("1055", 1, date(2019, 1, 2), 45_000))
        == "1055_C"
    )


def test_gtfs_resolver_tolerance(gtfs_dir: Path) -> None:
    strict = GtfsScheduleResolver(base_path=gtfs_dir, tolerance_s=0)
    lenient = GtfsScheduleResolver(base_path=gtfs_dir, tolerance_s=60)

    with pytest.raises(ScheduleMatchNotFoundError):
        asyncio.run(strict.find_trip_id("HSL:1055", 1, date(2019, 1, 1), 45_030))
    assert (
        asyncio.run(lenient.find_trip_id("HSL:1055", 1, date(2019, 1, 1), 45_030))
        == "HSL:1055_A"
    )


def test_gtfs_resolver_miss_is_no_such_entity(gtfs_dir: Path) -> None:
    resolver = GtfsScheduleResolver(base_path=gtfs_dir)

    with pytest.raises(NoSuchEntityError):
        asyncio.run(
            resolver.find_route_pattern_id("HSL:9999", 0, date(2019, 1, 1), 45_000)
        )


def _digitransit(handler) -> DigitransitScheduleResolver:
    return DigitransitScheduleResolver(
        url="https://routing.test/graphql",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )


def test_digitransit_resolver_queries_fuzzy_trip() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "data": {
                    "fuzzyTrip": {
                        "gtfsId": "HSL:1055_20190101_Ti_2_1230",
                        "pattern": {"code": "HSL:1055:1:01"},
                    }
                }
            },
        )

    resolver = _digitransit(handler)

    async def scenario() -> tuple[str, str]:
        return (
            await resolver.find_route_pattern_id("HSL:1055", 1, date(2019, 1, 1), 45_000),
            await resolver.find_trip_id("HSL:1055", 1, date(2019, 1, 1), 45_000),
        )

    pattern_id, trip_id = asyncio.run(scenario())

    assert pattern_id == "HSL:1055:1:01"
    assert trip_id == "HSL:1055_20190101_Ti_2_1230"

    body = json.loads(seen[0].content)
    assert body["variables"] == {
        "route": "HSL:1055",
        "direction": 1,
        "date": "2019-01-01",
        "time": 45_000,
    }
    assert seen[0].headers["digitransit-subscription-key"] == "secret"


def test_digitransit_resolver_null_trip_is_not_found() -> None:
    resolver = _digitransit(
        lambda request: httpx.Response(200, json={"data": {"fuzzyTrip": None}})
    )

    with pytest.raises(ScheduleMatchNotFoundError):
        asyncio.run(resolver.find_trip_id("HSL:1055", 1, date(2019, 1, 1), 45_000))


def test_digitransit_resolver_http_errors_propagate() -> None:
    resolver = _digitransit(lambda request: httpx.Response(503))

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(resolver.find_trip_id("HSL:1055", 1, date(2019, 1, 1), 45_000))

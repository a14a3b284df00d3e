from __future__ import annotations

import json
from datetime import date, datetime, timezone

import pytest

from src.domain.algorithms.hfp_codecs import (
    TopicFields,
    convert_direction_id,
    convert_route_id,
    convert_stop_id,
    decode_position_event,
    departure_time_to_seconds,
    is_end_of_line,
    parse_payload,
    parse_topic,
    scheduled_departure_s,
    should_roll_over_to_next_day,
)
from src.domain.exceptions import MalformedPositionEventError

TOPIC = "/hfp/v2/journey/ongoing/vp/bus/0022/00854/1055/1/Kamppi/12:30/1040129/5/60;24/19/73/46"


def _payload(**overrides) -> bytes:
    body = {
        "dir": "1",
        "tst": "2019-01-01T10:45:00.123Z",
        "oday": "2019-01-01",
        "start": "12:30",
        "drst": 1,
    }
    body.update(overrides)
    return json.dumps({"VP": body}).encode("utf-8")


def test_parse_topic_reads_fixed_segments() -> None:
    fields = parse_topic(TOPIC)

    assert fields == TopicFields(event_type="vp", route_id="1055", next_stop_id="1040129")


def test_parse_topic_rejects_short_topics() -> None:
    with pytest.raises(MalformedPositionEventError):
        parse_topic("/hfp/v2/journey/ongoing/vp/bus")


@pytest.mark.parametrize("value", ["EOL", "", "  "])
def test_end_of_line_sentinel(value: str) -> None:
    assert is_end_of_line(value)


def test_regular_stop_is_not_end_of_line() -> None:
    assert not is_end_of_line("1040129")


def test_direction_and_id_codecs() -> None:
    assert convert_direction_id("1") == 0
    assert convert_direction_id(2) == 1
    assert convert_stop_id("1040129") == "HSL:1040129"
    assert convert_route_id("1055", prefix="TEST") == "TEST:1055"


def test_departure_time_to_seconds() -> None:
    assert departure_time_to_seconds("12:30") == 45_000
    assert departure_time_to_seconds("00:10:05") == 605
    assert departure_time_to_seconds("00:10", roll_over_to_next_day=True) == 87_000


def test_roll_over_uses_feed_local_date() -> None:
    oday = date(2019, 1, 1)

    # 22:30 UTC is already 00:30 on Jan 2nd in Helsinki.
    late = datetime(2019, 1, 1, 22, 30, tzinfo=timezone.utc)
    early = datetime(2019, 1, 1, 20, 30, tzinfo=timezone.utc)

    assert should_roll_over_to_next_day(oday, late)
    assert not should_roll_over_to_next_day(oday, early)
    assert not should_roll_over_to_next_day(oday, late, tz="UTC")


def test_parse_payload_picks_event_body() -> None:
    assert parse_payload(_payload(), "vp")["dir"] == "1"
    assert parse_payload(json.dumps({"DOO": {}}), "vp") == {}


@pytest.mark.parametrize(
    "raw", [b"not json", b"\xff\xfe{", b"[1, 2]", json.dumps({"VP": 3})]
)
def test_parse_payload_rejects_malformed(raw) -> None:
    with pytest.raises(MalformedPositionEventError):
        parse_payload(raw, "vp")


def test_decode_position_event() -> None:
    event = decode_position_event(parse_topic(TOPIC), _payload())

    assert event.route_id == "1055"
    assert event.next_stop_id == "1040129"
    assert event.direction == "1"
    assert event.operating_day == date(2019, 1, 1)
    assert event.seen_at == datetime(2019, 1, 1, 10, 45, 0, 123000, tzinfo=timezone.utc)
    assert event.doors_open is True
    assert scheduled_departure_s(event) == 45_000


def test_decode_position_event_doors_default_closed() -> None:
    body = json.loads(_payload())
    del body["VP"]["drst"]

    event = decode_position_event(parse_topic(TOPIC), body)

    assert event.doors_open is False


def test_decode_position_event_after_midnight_rolls_over() -> None:
    event = decode_position_event(
        parse_topic(TOPIC),
        _payload(tst="2019-01-01T22:30:00Z", start="00:10"),
    )

    assert scheduled_departure_s(event) == 86_400 + 600


@pytest.mark.parametrize(
    "overrides",
    [
        {"dir": None},
        {"dir": "3"},
        {"tst": "yesterday"},
        {"oday": "2019-13-01"},
        {"start": "noon"},
    ],
)
def test_decode_position_event_rejects_invalid_fields(overrides) -> None:
    with pytest.raises(MalformedPositionEventError):
        decode_position_event(parse_topic(TOPIC), _payload(**overrides))

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import ClientError

from src.adapters.aws import dynamodb_client
from src.app.ports.output import (
    IRoutePatternRepository,
    IStopRepository,
    ITripRepository,
)
from src.domain.exceptions import EntityAlreadyExistsError, NoSuchEntityError
from src.domain.models import GeoPoint, RoutePattern, Stop, Trip

from .dynamodb_support import is_conditional_check_failed, query_items


def _put_new(table: str, item: dict[str, Any], entity: str) -> None:
    ddb = dynamodb_client()
    try:
        ddb.put_item(
            TableName=table,
            Item=item,
            ConditionExpression="attribute_not_exists(id)",
        )
    except ClientError as exc:
        if is_conditional_check_failed(exc):
            raise EntityAlreadyExistsError(
                f"{entity} {item['id']['S']} already exists"
            ) from exc
        raise


def _get(table: str, entity_id: str, entity: str) -> dict[str, Any]:
    ddb = dynamodb_client()
    resp = ddb.get_item(
        TableName=table,
        Key={"id": {"S": entity_id}},
        ConsistentRead=True,
    )
    item = resp.get("Item")
    if not item:
        raise NoSuchEntityError(f"{entity} {entity_id} not found")
    return item


@dataclass(slots=True)
class DynamoDbRoutePatternRepository(IRoutePatternRepository):
    """Route patterns in DynamoDB, keyed by `id`, stops in a `stop_ids` list.

    Env vars:
      - DDB_ROUTE_PATTERNS_TABLE (default: congestion-route-patterns)
    """

    table_name: str | None = None

    def _table(self) -> str:
        return (
            self.table_name
            or os.getenv("DDB_ROUTE_PATTERNS_TABLE")
            or "congestion-route-patterns"
        )

    async def get_by_id(self, route_pattern_id: str) -> RoutePattern:
        item = await asyncio.to_thread(
            _get, self._table(), route_pattern_id, "Route pattern"
        )
        return _route_pattern_from_item(item)

    async def create_by_id(self, route_pattern_id: str) -> RoutePattern:
        item = {"id": {"S": route_pattern_id}, "stop_ids": {"L": []}}
        await asyncio.to_thread(_put_new, self._table(), item, "Route pattern")
        return RoutePattern(id=route_pattern_id)

    async def associate_stop(self, route_pattern_id: str, stop_id: str) -> None:
        await asyncio.to_thread(self._associate_stop, route_pattern_id, stop_id)

    def _associate_stop(self, route_pattern_id: str, stop_id: str) -> None:
        ddb = dynamodb_client()
        try:
            ddb.update_item(
                TableName=self._table(),
                Key={"id": {"S": route_pattern_id}},
                UpdateExpression=(
                    "SET stop_ids = list_append(if_not_exists(stop_ids, :empty), :new)"
                ),
                ConditionExpression="attribute_exists(id) AND NOT contains(stop_ids, :sid)",
                ExpressionAttributeValues={
                    ":empty": {"L": []},
                    ":new": {"L": [{"S": stop_id}]},
                    ":sid": {"S": stop_id},
                },
                ReturnValuesOnConditionCheckFailure="ALL_OLD",
            )
        except ClientError as exc:
            if not is_conditional_check_failed(exc):
                raise
            # Condition failed on an existing item: the stop is already there.
            if not exc.response.get("Item"):
                raise NoSuchEntityError(
                    f"Route pattern {route_pattern_id} not found"
                ) from exc


def _route_pattern_from_item(item: dict[str, Any]) -> RoutePattern:
    stop_ids = tuple(
        v["S"] for v in item.get("stop_ids", {}).get("L", []) if "S" in v
    )
    return RoutePattern(id=item["id"]["S"], stop_ids=stop_ids)


@dataclass(slots=True)
class DynamoDbStopRepository(IStopRepository):
    """Stops in DynamoDB, keyed by canonical `id`.

    Env vars:
      - DDB_STOPS_TABLE (default: congestion-stops)
    """

    table_name: str | None = None

    def _table(self) -> str:
        return self.table_name or os.getenv("DDB_STOPS_TABLE") or "congestion-stops"

    async def get_by_id(self, stop_id: str) -> Stop:
        item = await asyncio.to_thread(_get, self._table(), stop_id, "Stop")
        return _stop_from_item(item)

    async def create_by_id(self, stop_id: str) -> Stop:
        await asyncio.to_thread(_put_new, self._table(), {"id": {"S": stop_id}}, "Stop")
        return Stop(id=stop_id)


def _stop_from_item(item: dict[str, Any]) -> Stop:
    location = None
    if "lat" in item and "lon" in item:
        location = GeoPoint(lat=float(item["lat"]["N"]), lon=float(item["lon"]["N"]))
    name = item.get("name", {}).get("S")
    return Stop(id=item["id"]["S"], name=name, location=location)


@dataclass(slots=True)
class DynamoDbTripRepository(ITripRepository):
    """Trips in DynamoDB, keyed by `id`.

    Env vars:
      - DDB_TRIPS_TABLE (default: congestion-trips)
      - DDB_TRIPS_BY_PATTERN_INDEX: GSI on route_pattern_id
        (default: route_pattern_id-index)
    """

    table_name: str | None = None
    index_name: str | None = None

    def _table(self) -> str:
        return self.table_name or os.getenv("DDB_TRIPS_TABLE") or "congestion-trips"

    def _index(self) -> str:
        return (
            self.index_name
            or os.getenv("DDB_TRIPS_BY_PATTERN_INDEX")
            or "route_pattern_id-index"
        )

    async def get_by_id(self, trip_id: str) -> Trip:
        item = await asyncio.to_thread(_get, self._table(), trip_id, "Trip")
        return _trip_from_item(item)

    async def create_by_id(self, trip_id: str, *, route_pattern_id: str) -> Trip:
        item = {
            "id": {"S": trip_id},
            "route_pattern_id": {"S": route_pattern_id},
        }
        await asyncio.to_thread(_put_new, self._table(), item, "Trip")
        return Trip(id=trip_id, route_pattern_id=route_pattern_id)

    async def list_by_route_pattern(self, route_pattern_id: str) -> list[Trip]:
        return await asyncio.to_thread(self._list_by_route_pattern, route_pattern_id)

    def _list_by_route_pattern(self, route_pattern_id: str) -> list[Trip]:
        items = query_items(
            dynamodb_client(),
            TableName=self._table(),
            IndexName=self._index(),
            KeyConditionExpression="route_pattern_id = :rp",
            ExpressionAttributeValues={":rp": {"S": route_pattern_id}},
        )
        return [_trip_from_item(item) for item in items]


def _trip_from_item(item: dict[str, Any]) -> Trip:
    return Trip(id=item["id"]["S"], route_pattern_id=item["route_pattern_id"]["S"])

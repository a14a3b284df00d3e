from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import uuid4

from src.adapters.aws import dynamodb_client
from src.app.ports.output import ITripStopRepository
from src.domain.models import TripStop

from .dynamodb_support import query_items


@dataclass(slots=True)
class DynamoDbTripStopRepository(ITripStopRepository):
    """Trip stop observations in DynamoDB.

    Hash key `trip_id`, range key `stop_seen_at` = "<stop_id>#<iso ts>#<nonce>";
    the nonce keeps heartbeats with identical timestamps apart.

    Env vars:
      - DDB_TRIP_STOPS_TABLE (default: congestion-trip-stops)
    """

    table_name: str | None = None

    def _table(self) -> str:
        return (
            self.table_name
            or os.getenv("DDB_TRIP_STOPS_TABLE")
            or "congestion-trip-stops"
        )

    async def add(self, trip_stop: TripStop) -> None:
        await asyncio.to_thread(self._add, trip_stop)

    def _add(self, trip_stop: TripStop) -> None:
        seen_at = trip_stop.seen_at.isoformat()
        ddb = dynamodb_client()
        ddb.put_item(
            TableName=self._table(),
            Item={
                "trip_id": {"S": trip_stop.trip_id},
                "stop_seen_at": {
                    "S": f"{trip_stop.stop_id}#{seen_at}#{uuid4().hex[:8]}"
                },
                "stop_id": {"S": trip_stop.stop_id},
                "seen_at": {"S": seen_at},
                "doors_open": {"BOOL": bool(trip_stop.doors_open)},
            },
        )

    async def list_by_trip(
        self, trip_id: str, *, stop_id: str | None = None
    ) -> list[TripStop]:
        return await asyncio.to_thread(self._list_by_trip, trip_id, stop_id)

    def _list_by_trip(self, trip_id: str, stop_id: str | None) -> list[TripStop]:
        condition = "trip_id = :t"
        values: dict[str, Any] = {":t": {"S": trip_id}}
        if stop_id is not None:
            condition += " AND begins_with(stop_seen_at, :s)"
            values[":s"] = {"S": f"{stop_id}#"}

        items = query_items(
            dynamodb_client(),
            TableName=self._table(),
            KeyConditionExpression=condition,
            ExpressionAttributeValues=values,
            ConsistentRead=True,
        )
        out = [_trip_stop_from_item(item) for item in items]
        out.sort(key=lambda ts: ts.seen_at)
        return out


def _trip_stop_from_item(item: dict[str, Any]) -> TripStop:
    return TripStop(
        trip_id=item["trip_id"]["S"],
        stop_id=item["stop_id"]["S"],
        seen_at=datetime.fromisoformat(item["seen_at"]["S"]),
        doors_open=bool(item.get("doors_open", {}).get("BOOL", False)),
    )

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from typing import Any

import httpx

from src.app.ports.output import IScheduleResolver
from src.domain.exceptions import ScheduleMatchNotFoundError

FUZZY_TRIP_QUERY = """
query FuzzyTrip($route: String!, $direction: Int, $date: String!, $time: Int!) {
  fuzzyTrip(route: $route, direction: $direction, date: $date, time: $time) {
    gtfsId
    pattern {
      code
    }
  }
}
"""


@dataclass(slots=True)
class DigitransitScheduleResolver(IScheduleResolver):
    """Resolves trips and route patterns with the Digitransit routing API.

    Env vars:
      - DIGITRANSIT_API_URL: GraphQL endpoint
      - DIGITRANSIT_API_KEY: subscription key, sent as a header if set
      - DIGITRANSIT_TIMEOUT_S: request timeout (default 10)
    """

    url: str | None = None
    api_key: str | None = None
    timeout_s: float = 10.0
    transport: httpx.AsyncBaseTransport | None = None

    def __post_init__(self) -> None:
        if self.url is None:
            self.url = os.getenv(
                "DIGITRANSIT_API_URL",
                "https://api.digitransit.fi/routing/v2/hsl/gtfs/v1",
            )
        if self.api_key is None:
            self.api_key = os.getenv("DIGITRANSIT_API_KEY")
        if os.getenv("DIGITRANSIT_TIMEOUT_S"):
            self.timeout_s = float(os.environ["DIGITRANSIT_TIMEOUT_S"])

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["digitransit-subscription-key"] = self.api_key
        return headers

    async def _fuzzy_trip(
        self, route_id: str, direction_id: int, service_date: date, departure_s: int
    ) -> dict[str, Any]:
        body = {
            "query": FUZZY_TRIP_QUERY,
            "variables": {
                "route": route_id,
                "direction": direction_id,
                "date": service_date.isoformat(),
                "time": departure_s,
            },
        }

        async with httpx.AsyncClient(
            timeout=self.timeout_s, transport=self.transport
        ) as client:
            resp = await client.post(str(self.url), json=body, headers=self._headers())
            resp.raise_for_status()
            payload = resp.json()

        errors = payload.get("errors")
        if errors and not payload.get("data"):
            raise RuntimeError(f"Digitransit query failed: {errors}")

        trip = (payload.get("data") or {}).get("fuzzyTrip")
        if not trip:
            raise ScheduleMatchNotFoundError(
                f"No scheduled trip for route {route_id} direction {direction_id} "
                f"on {service_date.isoformat()} at {departure_s}s"
            )
        return trip

    async def find_route_pattern_id(
        self, route_id: str, direction_id: int, service_date: date, departure_s: int
    ) -> str:
        trip = await self._fuzzy_trip(route_id, direction_id, service_date, departure_s)
        code = (trip.get("pattern") or {}).get("code")
        if not code:
            raise ScheduleMatchNotFoundError(
                f"Scheduled trip {trip.get('gtfsId')} has no route pattern"
            )
        return str(code)

    async def find_trip_id(
        self, route_id: str, direction_id: int, service_date: date, departure_s: int
    ) -> str:
        trip = await self._fuzzy_trip(route_id, direction_id, service_date, departure_s)
        return str(trip["gtfsId"])

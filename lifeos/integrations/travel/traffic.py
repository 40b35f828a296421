"""Traffic collaborator backed by the Google Directions API."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import aiohttp

from lifeos.integrations.base.boundary import (
    NonRetryableAPIError,
    collaborator_retry,
    raise_for_status,
)
from lifeos.optimization.models import CommuteRoute, RouteConditions
from lifeos.utils.logger import log_collaborator_call
from lifeos.utils.mixins import LoggerMixin


class TrafficClient(LoggerMixin):
    """Fetch live duration-in-traffic for saved commute routes."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://maps.googleapis.com/maps/api",
        timeout_seconds: float = 10,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._session: aiohttp.ClientSession | None = None

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def get_route_conditions(self, route: CommuteRoute) -> RouteConditions:
        payload = await self._fetch(route)
        return self.parse_conditions(route, payload)

    def parse_conditions(self, route: CommuteRoute, payload: Any) -> RouteConditions:
        if not isinstance(payload, dict) or payload.get("status") != "OK":
            raise NonRetryableAPIError(
                f"Directions lookup failed for route {route.route_id}"
            )
        leg = payload["routes"][0]["legs"][0]
        normal_seconds = leg["duration"]["value"]
        live_seconds = leg.get("duration_in_traffic", leg["duration"])["value"]
        return RouteConditions(
            route_id=route.route_id,
            origin=route.origin,
            destination=route.destination,
            normal_duration_minutes=max(normal_seconds / 60, 1.0),
            live_duration_minutes=max(live_seconds / 60, 1.0),
            observed_at=datetime.now(UTC),
        )

    @collaborator_retry
    async def _fetch(self, route: CommuteRoute) -> Any:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
            )
        url = f"{self.base_url}/directions/json"
        log_collaborator_call("traffic", "get_route_conditions", route=route.route_id)
        params = {
            "origin": route.origin,
            "destination": route.destination,
            "departure_time": "now",
            "traffic_model": "best_guess",
            "key": self.api_key,
        }
        async with self._session.get(url, params=params) as resp:
            raise_for_status(resp.status, url)
            return await resp.json()

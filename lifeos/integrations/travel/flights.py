"""Flight-status collaborator backed by an aviationstack-style REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import aiohttp

from lifeos.integrations.base.boundary import collaborator_retry, raise_for_status
from lifeos.optimization.models import FlightState, FlightStatus
from lifeos.utils.logger import log_collaborator_call
from lifeos.utils.mixins import LoggerMixin

_STATUS_MAP = {
    "scheduled": FlightState.SCHEDULED,
    "active": FlightState.DEPARTED,
    "landed": FlightState.ARRIVED,
    "cancelled": FlightState.CANCELLED,
    "incident": FlightState.DELAYED,
    "diverted": FlightState.DELAYED,
}


class FlightStatusClient(LoggerMixin):
    """Look up live flight status by IATA flight number."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.aviationstack.com/v1",
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

    async def get_flight_status(self, flight_number: str) -> FlightStatus | None:
        payload = await self._fetch(flight_number)
        items = payload.get("data") if isinstance(payload, dict) else None
        if not items:
            self.logger.info("Flight not found", flight_number=flight_number)
            return None
        return self.parse_flight(items[0], flight_number)

    def parse_flight(self, item: dict[str, Any], flight_number: str) -> FlightStatus | None:
        arrival = item.get("arrival") or {}
        departure = item.get("departure") or {}
        scheduled = _parse_timestamp(arrival.get("scheduled"))
        if scheduled is None:
            self.logger.debug("Flight has no scheduled arrival", flight_number=flight_number)
            return None
        estimated = _parse_timestamp(arrival.get("estimated") or arrival.get("actual"))
        delay = arrival.get("delay") or departure.get("delay")
        status = _STATUS_MAP.get(str(item.get("flight_status", "")).lower(), FlightState.SCHEDULED)
        if delay and status in (FlightState.SCHEDULED, FlightState.DEPARTED):
            status = FlightState.DELAYED
        return FlightStatus(
            flight_number=(item.get("flight") or {}).get("iata") or flight_number,
            status=status,
            scheduled_arrival=scheduled,
            estimated_arrival=estimated,
            delay_minutes=int(delay) if delay else None,
            delay_reason=departure.get("delay_reason"),
            arrival_airport=arrival.get("airport"),
        )

    @collaborator_retry
    async def _fetch(self, flight_number: str) -> Any:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
            )
        url = f"{self.base_url}/flights"
        log_collaborator_call("flight_status", "get_flight_status", flight=flight_number)
        async with self._session.get(
            url, params={"access_key": self.api_key, "flight_iata": flight_number}
        ) as resp:
            raise_for_status(resp.status, url)
            return await resp.json()


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    candidate = value.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        return None

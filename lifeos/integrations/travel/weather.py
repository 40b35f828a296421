"""Weather collaborator backed by the OpenWeatherMap current-weather API."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import aiohttp

from lifeos.integrations.base.boundary import (
    NonRetryableAPIError,
    collaborator_retry,
    raise_for_status,
)
from lifeos.optimization.models import WeatherConditions
from lifeos.utils.logger import log_collaborator_call
from lifeos.utils.mixins import LoggerMixin


class WeatherClient(LoggerMixin):
    """Fetch current conditions for a meeting location."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openweathermap.org/data/2.5",
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

    async def get_conditions(self, location: str) -> WeatherConditions:
        payload = await self._fetch(location)
        return self.parse_conditions(location, payload)

    def parse_conditions(self, location: str, payload: Any) -> WeatherConditions:
        weather = payload.get("weather") if isinstance(payload, dict) else None
        if not weather:
            raise NonRetryableAPIError(f"Weather lookup failed for '{location}'")
        current = weather[0]
        condition = str(current.get("main", "unknown"))
        return WeatherConditions(
            location=location,
            condition=condition,
            description=str(current.get("description", "")),
            impact=WeatherConditions.assess(condition),
            observed_at=datetime.now(UTC),
        )

    @collaborator_retry
    async def _fetch(self, location: str) -> Any:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
            )
        url = f"{self.base_url}/weather"
        log_collaborator_call("weather", "get_conditions", location=location)
        params = {"q": location, "appid": self.api_key, "units": "metric"}
        async with self._session.get(url, params=params) as resp:
            raise_for_status(resp.status, url)
            return await resp.json()

"""Fan-out helpers shared by the full optimization run and the monitor."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timedelta
from typing import Any

import structlog

from lifeos.integrations.base.boundary import bounded
from lifeos.integrations.base.protocols import (
    FlightStatusCollaborator,
    TrafficCollaborator,
    WeatherCollaborator,
)
from lifeos.optimization.detectors import Detector, TravelSignals
from lifeos.optimization.errors import CollaboratorUnavailable
from lifeos.optimization.models import (
    CalendarEvent,
    CommuteRoute,
    FlightStatus,
    OptimizationSuggestion,
    RouteConditions,
    TravelWatchlist,
    WeatherConditions,
)

logger = structlog.get_logger(__name__)


async def run_detector(
    name: str, detector: Detector, *args: Any, timeout: float, **kwargs: Any
) -> tuple[list[OptimizationSuggestion], str | None]:
    """Run one detector off the event loop; failures and timeouts yield ``[]``."""
    try:
        result = await asyncio.wait_for(
            asyncio.to_thread(detector, *args, **kwargs), timeout=timeout
        )
    except TimeoutError:
        logger.warning("Detector timed out", detector=name, timeout=timeout)
        return [], f"timed out after {timeout}s"
    except Exception as e:
        logger.error("Detector failed", detector=name, error=str(e), exc_info=True)
        return [], str(e) or type(e).__name__
    logger.debug("Detector finished", detector=name, suggestions=len(result))
    return list(result), None


async def run_detectors(
    detectors: Mapping[str, Detector],
    *args: Any,
    timeout: float,
    extra_kwargs: Mapping[str, Mapping[str, Any]] | None = None,
    **kwargs: Any,
) -> tuple[list[list[OptimizationSuggestion]], dict[str, str]]:
    """Run detectors concurrently; returns batches in registry order plus failures."""
    extra_kwargs = extra_kwargs or {}
    names = list(detectors)
    outcomes = await asyncio.gather(
        *(
            run_detector(
                name,
                detectors[name],
                *args,
                timeout=timeout,
                **kwargs,
                **extra_kwargs.get(name, {}),
            )
            for name in names
        )
    )
    batches = [batch for batch, _ in outcomes]
    failures = {
        name: error for name, (_, error) in zip(names, outcomes) if error is not None
    }
    return batches, failures


def weather_locations(
    events: Iterable[CalendarEvent],
    now: datetime,
    *,
    lookahead_minutes: int,
    limit: int,
) -> list[str]:
    """Distinct locations of meetings starting within the lookahead, soonest first."""
    horizon = now + timedelta(minutes=lookahead_minutes)
    locations: list[str] = []
    seen: set[str] = set()
    for event in sorted(events, key=lambda e: e.start):
        if not event.is_meeting or not event.location:
            continue
        if not now < event.start <= horizon:
            continue
        key = event.location.casefold()
        if key in seen:
            continue
        seen.add(key)
        locations.append(event.location)
        if len(locations) >= limit:
            break
    return locations


async def collect_travel_signals(
    watchlist: TravelWatchlist,
    flights: FlightStatusCollaborator | None,
    traffic: TrafficCollaborator | None,
    *,
    timeout: float,
    weather: WeatherCollaborator | None = None,
    locations: Sequence[str] = (),
) -> TravelSignals:
    """Poll tracked flights, routes and meeting weather; a failing lookup contributes nothing."""

    async def _flight(
        client: FlightStatusCollaborator, number: str
    ) -> FlightStatus | None:
        try:
            return await bounded(
                client.get_flight_status(number),
                timeout=timeout,
                collaborator="flight_status",
                operation="get_flight_status",
            )
        except CollaboratorUnavailable as e:
            logger.warning("Flight status unavailable", flight=number, error=str(e))
            return None

    async def _route(
        client: TrafficCollaborator, route: CommuteRoute
    ) -> RouteConditions | None:
        try:
            return await bounded(
                client.get_route_conditions(route),
                timeout=timeout,
                collaborator="traffic",
                operation="get_route_conditions",
            )
        except CollaboratorUnavailable as e:
            logger.warning("Route conditions unavailable", route=route.route_id, error=str(e))
            return None

    async def _weather(
        client: WeatherCollaborator, location: str
    ) -> WeatherConditions | None:
        try:
            return await bounded(
                client.get_conditions(location),
                timeout=timeout,
                collaborator="weather",
                operation="get_conditions",
            )
        except CollaboratorUnavailable as e:
            logger.warning("Weather unavailable", location=location, error=str(e))
            return None

    flight_results: list[FlightStatus | None] = []
    route_results: list[RouteConditions | None] = []
    weather_results: list[WeatherConditions | None] = []
    if flights is not None and watchlist.flight_numbers:
        flight_results = await asyncio.gather(
            *(_flight(flights, n) for n in watchlist.flight_numbers)
        )
    if traffic is not None and watchlist.commute_routes:
        route_results = await asyncio.gather(
            *(_route(traffic, r) for r in watchlist.commute_routes)
        )
    if weather is not None and locations:
        weather_results = await asyncio.gather(
            *(_weather(weather, loc) for loc in locations)
        )
    return TravelSignals(
        flights=tuple(f for f in flight_results if f is not None),
        routes=tuple(r for r in route_results if r is not None),
        weather=tuple(w for w in weather_results if w is not None),
    )

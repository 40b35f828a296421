"""Collaborator contracts consumed by the optimization core."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from lifeos.integrations.base.schemas import EventDraft, EventPatch
from lifeos.optimization.models import (
    CalendarEvent,
    CommuteRoute,
    FlightStatus,
    RouteConditions,
    WeatherConditions,
)


@runtime_checkable
class CalendarCollaborator(Protocol):
    async def list_events(
        self, calendar_id: str, range_start: datetime, range_end: datetime
    ) -> list[CalendarEvent]: ...

    async def create_event(
        self, calendar_id: str, event: EventDraft
    ) -> CalendarEvent: ...

    async def update_event(
        self, calendar_id: str, event_id: str, patch: EventPatch
    ) -> CalendarEvent: ...

    async def delete_event(self, calendar_id: str, event_id: str) -> None: ...


@runtime_checkable
class FlightStatusCollaborator(Protocol):
    async def get_flight_status(self, flight_number: str) -> FlightStatus | None: ...


@runtime_checkable
class TrafficCollaborator(Protocol):
    async def get_route_conditions(self, route: CommuteRoute) -> RouteConditions: ...


@runtime_checkable
class WeatherCollaborator(Protocol):
    async def get_conditions(self, location: str) -> WeatherConditions: ...


@runtime_checkable
class TextGenerator(Protocol):
    async def generate(self, prompt: str, max_length: int) -> str: ...


@runtime_checkable
class Notifier(Protocol):
    async def notify(self, title: str, message: str, **context: Any) -> None: ...


@runtime_checkable
class KeyValueStore(Protocol):
    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def delete(self, key: str) -> None: ...

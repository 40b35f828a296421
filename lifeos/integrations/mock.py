"""
Mock collaborators for development and testing
"""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta

from lifeos.integrations.base.schemas import EventDraft, EventPatch
from lifeos.optimization.models import (
    CalendarEvent,
    CommuteRoute,
    FlightStatus,
    RouteConditions,
    WeatherConditions,
)
from lifeos.utils.mixins import LoggerMixin


class MockCalendar(LoggerMixin):
    """In-memory calendar that behaves like the Google Calendar adapter."""

    def __init__(self, events: list[CalendarEvent] | None = None) -> None:
        self.events: dict[str, CalendarEvent] = {e.id: e for e in events or []}
        self.fail_with: Exception | None = None
        self.calls: list[str] = []
        self._ids = itertools.count(1)

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail_with is not None:
            raise self.fail_with

    async def list_events(
        self, calendar_id: str, range_start: datetime, range_end: datetime
    ) -> list[CalendarEvent]:
        self._check("list_events")
        selected = [e for e in self.events.values() if e.overlaps(range_start, range_end)]
        return sorted(selected, key=lambda e: e.start)

    async def create_event(self, calendar_id: str, event: EventDraft) -> CalendarEvent:
        self._check("create_event")
        created = CalendarEvent(
            id=f"mock-{next(self._ids)}",
            title=event.title,
            description=event.description,
            location=event.location,
            start=event.start,
            end=event.end,
            status=event.status,
            metadata=dict(event.metadata),
        )
        self.events[created.id] = created
        self.logger.debug("Mock event created", event_id=created.id)
        return created

    async def update_event(
        self, calendar_id: str, event_id: str, patch: EventPatch
    ) -> CalendarEvent:
        self._check("update_event")
        current = self.events.get(event_id)
        if current is None:
            raise KeyError(f"Unknown event '{event_id}'")
        updates: dict[str, object] = {"metadata": {**current.metadata, **patch.metadata}}
        if patch.start is not None:
            updates["start"] = patch.start
        if patch.end is not None:
            updates["end"] = patch.end
        if patch.title is not None:
            updates["title"] = patch.title
        updated = CalendarEvent.model_validate({**current.model_dump(), **updates})
        self.events[event_id] = updated
        return updated

    async def delete_event(self, calendar_id: str, event_id: str) -> None:
        self._check("delete_event")
        self.events.pop(event_id, None)


class MockFlightStatus:
    """Returns canned flight statuses keyed by flight number."""

    def __init__(self, flights: dict[str, FlightStatus] | None = None) -> None:
        self.flights = dict(flights or {})
        self.fail_with: Exception | None = None

    async def get_flight_status(self, flight_number: str) -> FlightStatus | None:
        if self.fail_with is not None:
            raise self.fail_with
        return self.flights.get(flight_number)


class MockTraffic:
    """Returns canned traffic factors keyed by route id (1.0 when unknown)."""

    def __init__(self, factors: dict[str, float] | None = None) -> None:
        self.factors = dict(factors or {})
        self.observed_at: datetime | None = None
        self.fail_with: Exception | None = None

    async def get_route_conditions(self, route: CommuteRoute) -> RouteConditions:
        if self.fail_with is not None:
            raise self.fail_with
        factor = self.factors.get(route.route_id, 1.0)
        kwargs = {}
        if self.observed_at is not None:
            kwargs["observed_at"] = self.observed_at
        return RouteConditions(
            route_id=route.route_id,
            origin=route.origin,
            destination=route.destination,
            normal_duration_minutes=route.normal_duration_minutes,
            live_duration_minutes=route.normal_duration_minutes * factor,
            **kwargs,
        )


class MockWeather:
    """Returns canned weather conditions keyed by location (clear when unknown)."""

    def __init__(self, conditions: dict[str, str] | None = None) -> None:
        self.conditions = dict(conditions or {})
        self.observed_at: datetime | None = None
        self.fail_with: Exception | None = None
        self.requested: list[str] = []

    async def get_conditions(self, location: str) -> WeatherConditions:
        self.requested.append(location)
        if self.fail_with is not None:
            raise self.fail_with
        condition = self.conditions.get(location, "Clear")
        kwargs = {}
        if self.observed_at is not None:
            kwargs["observed_at"] = self.observed_at
        return WeatherConditions(
            location=location,
            condition=condition,
            impact=WeatherConditions.assess(condition),
            **kwargs,
        )


class MockTextGenerator:
    """Deterministic text generator that echoes a short canned reply."""

    def __init__(self, reply: str = "Your schedule was reviewed.") -> None:
        self.reply = reply
        self.prompts: list[str] = []

    async def generate(self, prompt: str, max_length: int) -> str:
        self.prompts.append(prompt)
        return self.reply[:max_length]


def sample_events(now: datetime) -> list[CalendarEvent]:
    """A small, realistic day of meetings for mock mode."""
    day = now.replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=1)
    return [
        CalendarEvent(
            id="mock-standup",
            title="Team Standup",
            start=day.replace(hour=9),
            end=day.replace(hour=9, minute=30),
            attendees=("alice@example.com", "bob@example.com"),
        ),
        CalendarEvent(
            id="mock-design",
            title="Design Review",
            start=day.replace(hour=9, minute=30),
            end=day.replace(hour=10, minute=30),
            attendees=("carol@example.com",),
        ),
        CalendarEvent(
            id="mock-strategy",
            title="Strategy Review",
            start=day.replace(hour=13),
            end=day.replace(hour=14),
            attendees=("dave@example.com", "erin@example.com"),
        ),
    ]

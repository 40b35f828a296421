"""Normalized, bounded access to events and preferences."""

from __future__ import annotations

from datetime import datetime

from pydantic import ValidationError

from lifeos.integrations.base.boundary import bounded
from lifeos.integrations.base.protocols import CalendarCollaborator
from lifeos.optimization.errors import CollaboratorUnavailable, DataUnavailable
from lifeos.optimization.models import CalendarEvent, UserPreferences
from lifeos.optimization.store import ProfileStore
from lifeos.utils.mixins import LoggerMixin


class EventSource(LoggerMixin):
    """Loads the event snapshot and preferences for one optimization pass."""

    def __init__(
        self,
        calendar: CalendarCollaborator,
        profile: ProfileStore,
        calendar_id: str,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.calendar = calendar
        self.profile = profile
        self.calendar_id = calendar_id
        self.timeout_seconds = timeout_seconds

    async def load_events(
        self, range_start: datetime, range_end: datetime
    ) -> list[CalendarEvent]:
        """Events overlapping the range, ascending by start.

        Raises:
            DataUnavailable: the calendar collaborator failed or timed out
        """
        try:
            events = await bounded(
                self.calendar.list_events(self.calendar_id, range_start, range_end),
                timeout=self.timeout_seconds,
                collaborator="calendar",
                operation="list_events",
            )
        except CollaboratorUnavailable as e:
            self.logger.warning("Calendar events unavailable", error=str(e))
            raise DataUnavailable(str(e)) from e
        return sorted(events, key=lambda e: (e.start, e.end))

    async def load_preferences(self) -> UserPreferences:
        """Stored preferences, or the documented defaults when none exist."""
        try:
            raw = await self.profile.get_preferences_record()
        except Exception as e:
            self.logger.warning("Preferences unavailable, using defaults", error=str(e))
            return UserPreferences.default()

        if raw is None:
            self.logger.info("ConfigurationDefault", reason="no stored preferences")
            return UserPreferences.default()
        try:
            return UserPreferences.model_validate(raw)
        except ValidationError as e:
            self.logger.warning(
                "Stored preferences unreadable, using defaults", error=str(e)
            )
            return UserPreferences.default()

"""HTTP adapter implementing the calendar collaborator on Google Calendar."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any
from urllib.parse import quote

import aiohttp

from lifeos.integrations.base.boundary import (
    NonRetryableAPIError,
    collaborator_retry,
    raise_for_status,
)
from lifeos.integrations.base.schemas import EventDraft, EventPatch
from lifeos.integrations.google_calendar.schemas import GoogleEventRecord
from lifeos.optimization.models import CalendarEvent, EventStatus
from lifeos.utils.logger import log_collaborator_call
from lifeos.utils.mixins import LoggerMixin


class GoogleCalendarService(LoggerMixin):
    """Wrapper around the Google Calendar REST API."""

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://www.googleapis.com/calendar/v3",
        timeout_seconds: float = 30,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.timeout_seconds = timeout_seconds
        self._session: aiohttp.ClientSession | None = None

    async def get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                headers={
                    "Authorization": f"Bearer {self.access_token}",
                    "Content-Type": "application/json",
                },
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def list_events(
        self, calendar_id: str, range_start: datetime, range_end: datetime
    ) -> list[CalendarEvent]:
        url = f"{self._events_url(calendar_id)}"
        params = {
            "timeMin": range_start.isoformat(),
            "timeMax": range_end.isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": "250",
        }
        events: list[CalendarEvent] = []
        page_token: str | None = None
        while True:
            if page_token:
                params["pageToken"] = page_token
            payload = await self._request_json("GET", url, params=params)
            if not isinstance(payload, dict):
                break
            for item in payload.get("items", []):
                if not isinstance(item, dict):
                    continue
                event = self.build_event(item)
                if event is not None:
                    events.append(event)
            page_token = payload.get("nextPageToken")
            if not page_token:
                break
        return sorted(events, key=lambda e: e.start)

    async def create_event(self, calendar_id: str, event: EventDraft) -> CalendarEvent:
        body: dict[str, Any] = {
            "summary": event.title,
            "description": event.description,
            "location": event.location,
            "start": {"dateTime": event.start.isoformat()},
            "end": {"dateTime": event.end.isoformat()},
            "status": event.status.value,
        }
        if event.metadata:
            body["extendedProperties"] = {"private": dict(event.metadata)}
        payload = await self._request_json(
            "POST", self._events_url(calendar_id), json_body=body
        )
        return self._require_event(payload, "create_event")

    async def update_event(
        self, calendar_id: str, event_id: str, patch: EventPatch
    ) -> CalendarEvent:
        body: dict[str, Any] = {}
        if patch.start is not None:
            body["start"] = {"dateTime": patch.start.isoformat()}
        if patch.end is not None:
            body["end"] = {"dateTime": patch.end.isoformat()}
        if patch.title is not None:
            body["summary"] = patch.title
        if patch.metadata:
            # PATCH merges private extended properties key by key
            body["extendedProperties"] = {"private": dict(patch.metadata)}
        url = f"{self._events_url(calendar_id)}/{quote(event_id, safe='')}"
        payload = await self._request_json("PATCH", url, json_body=body)
        return self._require_event(payload, "update_event")

    async def delete_event(self, calendar_id: str, event_id: str) -> None:
        url = f"{self._events_url(calendar_id)}/{quote(event_id, safe='')}"
        await self._request_json("DELETE", url)

    def build_event(self, raw_event: dict[str, Any]) -> CalendarEvent | None:
        """Normalize a raw API item; all-day and malformed items are skipped."""
        try:
            record = GoogleEventRecord.model_validate(self._normalize_event(raw_event))
        except Exception as exc:
            self.logger.debug(
                "Failed to parse calendar event",
                event_id=raw_event.get("id"),
                error=str(exc),
            )
            return None
        if record.all_day:
            return None
        try:
            status = EventStatus(record.status or "confirmed")
        except ValueError:
            status = EventStatus.CONFIRMED
        try:
            return CalendarEvent(
                id=record.event_id,
                title=record.summary or "(no title)",
                description=record.description,
                location=record.location,
                start=record.start_time,
                end=record.end_time,
                attendees=tuple(record.attendees),
                status=status,
                metadata=record.private_properties,
            )
        except ValueError as exc:
            self.logger.debug(
                "Skipping invalid calendar event",
                event_id=record.event_id,
                error=str(exc),
            )
            return None

    def _events_url(self, calendar_id: str) -> str:
        return f"{self.base_url}/calendars/{quote(calendar_id, safe='')}/events"

    def _require_event(self, payload: Any, operation: str) -> CalendarEvent:
        event = self.build_event(payload) if isinstance(payload, dict) else None
        if event is None:
            raise NonRetryableAPIError(
                f"Google Calendar {operation} returned an unusable event"
            )
        return event

    @collaborator_retry
    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        session = await self.get_session()
        log_collaborator_call("google_calendar", method, url=url)
        async with session.request(method, url, params=params, json=json_body) as resp:
            raise_for_status(resp.status, url)
            if resp.status == 204 or method == "DELETE":
                return None
            try:
                return await resp.json()
            except aiohttp.ContentTypeError:
                self.logger.debug(
                    "Google Calendar API returned non-JSON response", url=url
                )
                return None

    def _normalize_event(self, event: dict[str, Any]) -> dict[str, Any]:
        start_info = event.get("start", {})
        end_info = event.get("end", {})
        start_dt = self._parse_datetime(start_info)
        end_dt = self._parse_datetime(end_info)
        all_day = "date" in start_info or start_info.get("dateTime") is None
        if all_day and start_dt is not None and end_dt is None:
            end_dt = start_dt + timedelta(days=1)
        extended = event.get("extendedProperties") or {}
        result = dict(event)
        result.update(
            {
                "start_time": start_dt,
                "end_time": end_dt,
                "all_day": all_day,
                "attendees": self._extract_attendees(event.get("attendees", [])),
                "private_properties": {
                    str(k): str(v) for k, v in (extended.get("private") or {}).items()
                },
                "raw": event,
            }
        )
        return result

    def _parse_datetime(self, value: Any) -> datetime | None:
        if value is None:
            return None
        if isinstance(value, datetime):
            return value
        if isinstance(value, dict):
            if "dateTime" in value:
                raw = value.get("dateTime")
            elif "date" in value:
                raw = value.get("date") + "T00:00:00+00:00"
            else:
                return None
        else:
            raw = value

        if isinstance(raw, str):
            candidate = raw.strip()
            if candidate.endswith("Z"):
                candidate = candidate[:-1] + "+00:00"
            try:
                return datetime.fromisoformat(candidate)
            except ValueError:
                return None
        return None

    @staticmethod
    def _extract_attendees(attendees: Iterable[Any]) -> list[str]:
        results: list[str] = []
        for attendee in attendees:
            if isinstance(attendee, dict):
                email = attendee.get("email")
                if email and not attendee.get("self"):
                    results.append(email)
        return results

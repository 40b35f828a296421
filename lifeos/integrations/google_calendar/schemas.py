"""Typed data objects for the Google Calendar adapter."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GoogleEventRecord(BaseModel):
    """Google Calendar event as returned by the REST API, times normalized."""

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    event_id: str = Field(alias="id")
    summary: str | None = None
    description: str | None = None
    location: str | None = None

    start_time: datetime
    end_time: datetime
    all_day: bool = False

    status: str | None = None
    attendees: list[str] = Field(default_factory=list)
    private_properties: dict[str, str] = Field(default_factory=dict)

    raw: dict[str, Any] = Field(default_factory=dict)

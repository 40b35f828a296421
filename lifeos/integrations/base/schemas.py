"""Shared schemas for calendar collaborator mutations."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from lifeos.optimization.models import EventStatus


class EventDraft(BaseModel):
    """A new event to be created by the calendar collaborator."""

    title: str
    description: str | None = None
    location: str | None = None
    start: datetime
    end: datetime
    status: EventStatus = EventStatus.CONFIRMED
    metadata: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_ordering(self) -> EventDraft:
        if self.end <= self.start:
            raise ValueError("Draft event must end after it starts")
        return self


class EventPatch(BaseModel):
    """Partial update; ``metadata`` entries are merged into the existing map."""

    start: datetime | None = None
    end: datetime | None = None
    title: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)

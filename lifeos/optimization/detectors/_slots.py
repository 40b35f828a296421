"""Shared free-slot helpers for detectors that propose new times."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from lifeos.optimization.models import CalendarEvent


def is_free(
    start: datetime,
    end: datetime,
    events: Iterable[CalendarEvent],
    *,
    ignore_id: str | None = None,
) -> bool:
    """True when no active event other than ``ignore_id`` overlaps ``[start, end)``."""
    for event in events:
        if event.id == ignore_id or not event.is_active:
            continue
        if event.overlaps(start, end):
            return False
    return True

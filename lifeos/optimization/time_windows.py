"""Time-of-day windows ("HH:MM-HH:MM") and timezone helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo

_WINDOW_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})\s*$")


@lru_cache(maxsize=32)
def resolve_timezone(name: str) -> tzinfo:
    """Return a tzinfo for an IANA name, treating UTC without a tz database."""
    if name.upper() in {"UTC", "Z", "ETC/UTC"}:
        return timezone.utc
    return ZoneInfo(name)


def parse_time_of_day(value: str) -> time:
    hours, _, minutes = value.strip().partition(":")
    parsed = time(int(hours), int(minutes or 0))
    return parsed


@dataclass(frozen=True)
class TimeWindow:
    """A recurring daily window such as ``09:00-11:00``.

    Windows never wrap past midnight; ``end`` must be after ``start``.
    """

    start: time
    end: time

    @classmethod
    def parse(cls, value: str) -> TimeWindow:
        match = _WINDOW_PATTERN.match(value)
        if not match:
            raise ValueError(f"Invalid time window '{value}', expected HH:MM-HH:MM")
        start_h, start_m, end_h, end_m = (int(part) for part in match.groups())
        if start_h > 23 or end_h > 24 or start_m > 59 or end_m > 59:
            raise ValueError(f"Invalid time window '{value}'")
        end = time(23, 59, 59) if end_h == 24 else time(end_h, end_m)
        window = cls(start=time(start_h, start_m), end=end)
        if window.end <= window.start:
            raise ValueError(f"Time window '{value}' must end after it starts")
        return window

    @property
    def minutes(self) -> int:
        return (
            self.end.hour * 60 + self.end.minute - self.start.hour * 60 - self.start.minute
        )

    def contains(self, moment: time) -> bool:
        """Half-open containment: start <= moment < end."""
        return self.start <= moment < self.end

    def on(self, day: date, tz: tzinfo) -> tuple[datetime, datetime]:
        """Concrete occurrence of this window on ``day`` in ``tz``."""
        return (
            datetime.combine(day, self.start, tzinfo=tz),
            datetime.combine(day, self.end, tzinfo=tz),
        )

    def overlap_minutes(self, start: datetime, end: datetime, tz: tzinfo) -> float:
        """Minutes of ``[start, end)`` that fall inside this window (any day)."""
        local_start = start.astimezone(tz)
        local_end = end.astimezone(tz)
        total = 0.0
        day = local_start.date()
        while day <= local_end.date():
            window_start, window_end = self.on(day, tz)
            lo = max(window_start, local_start)
            hi = min(window_end, local_end)
            if hi > lo:
                total += (hi - lo).total_seconds() / 60
            day += timedelta(days=1)
        return total

    def __str__(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')}"


def parse_windows(values: list[str]) -> list[TimeWindow]:
    return [TimeWindow.parse(value) for value in values]


def local_time_of_day(moment: datetime, tz: tzinfo) -> time:
    return moment.astimezone(tz).time()


def align_up(moment: datetime, granularity_minutes: int) -> datetime:
    """Round ``moment`` up to the next slot boundary (no-op when aligned)."""
    if granularity_minutes <= 0:
        return moment
    base = moment.replace(second=0, microsecond=0)
    if base < moment:
        base += timedelta(minutes=1)
    remainder = (base.hour * 60 + base.minute) % granularity_minutes
    if remainder:
        base += timedelta(minutes=granularity_minutes - remainder)
    return base

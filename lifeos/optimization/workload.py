"""Workload heuristics derived from the current event set."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta

from lifeos.optimization.models import (
    CalendarEvent,
    HealthSignal,
    UserPreferences,
    WorkloadAnalysis,
)

TRAILING_WINDOW = timedelta(days=7)
# Meetings closer than this count as one uninterrupted streak
STREAK_GAP = timedelta(minutes=15)


def _clamp(value: float, low: float = 0.0, high: float = 10.0) -> float:
    return max(low, min(high, value))


def compute_workload(
    events: Sequence[CalendarEvent],
    preferences: UserPreferences,
    health: HealthSignal | None = None,
    *,
    until: datetime | None = None,
) -> WorkloadAnalysis:
    """Summarize meeting load into stress and burnout scores.

    Weekly hours cover the trailing seven days before ``until`` (default: the
    current time), never a bound taken from the events themselves. Stress and
    burnout only use terms that never decrease when a meeting is added, so
    both scores are monotonic in meeting load.
    Optimizer-created blocks and cancelled events are not meetings.
    """
    meetings = sorted((e for e in events if e.is_meeting), key=lambda e: e.start)
    if not meetings:
        return WorkloadAnalysis(
            focus_hours_per_day=preferences.working_hours.as_window().minutes / 60,
            stress_level=_clamp(_health_stress(health)),
            burnout_risk=_clamp(_health_burnout(health)),
        )

    tz = preferences.tz
    reference = until or datetime.now(UTC)
    window_start = reference - TRAILING_WINDOW

    weekly_minutes = 0.0
    for event in meetings:
        lo = max(event.start, window_start)
        hi = min(event.end, reference)
        if hi > lo:
            weekly_minutes += (hi - lo).total_seconds() / 60
    weekly_hours = weekly_minutes / 60

    per_day: dict[date, float] = defaultdict(float)
    for event in meetings:
        per_day[event.start.astimezone(tz).date()] += event.duration_minutes / 60
    meeting_density = len(meetings) / len(per_day)
    peak_day_hours = max(per_day.values())

    capacity_hours = preferences.working_hours.as_window().minutes / 60
    average_day_hours = sum(per_day.values()) / len(per_day)
    focus_hours_per_day = max(0.0, capacity_hours - average_day_hours)

    streak = _longest_streak(meetings)
    work_window = preferences.working_hours.as_window()
    evening = sum(
        1 for e in meetings if not work_window.contains(e.start.astimezone(tz).time())
    )

    weekly_term = weekly_hours / 40 * 4
    peak_term = peak_day_hours / 8 * 3
    streak_term = max(0, streak - 2) * 0.5
    evening_term = evening * 0.25

    stress = _clamp(
        weekly_term * 0.75 + peak_term + streak_term * 0.5 + _health_stress(health)
    )
    burnout = _clamp(
        weekly_term + peak_term + streak_term + evening_term + _health_burnout(health)
    )

    return WorkloadAnalysis(
        weekly_hours=round(weekly_hours, 2),
        meeting_density=round(meeting_density, 2),
        stress_level=round(stress, 2),
        burnout_risk=round(burnout, 2),
        focus_hours_per_day=round(focus_hours_per_day, 2),
        longest_meeting_streak=streak,
        evening_meeting_ratio=round(evening / len(meetings), 3),
    )


def _longest_streak(meetings: Sequence[CalendarEvent]) -> int:
    longest = 0
    current = 0
    streak_end: datetime | None = None
    for event in meetings:
        if streak_end is not None and event.start - streak_end < STREAK_GAP:
            current += 1
            streak_end = max(streak_end, event.end)
        else:
            current = 1
            streak_end = event.end
        longest = max(longest, current)
    return longest


def _health_stress(health: HealthSignal | None) -> float:
    if health is None:
        return 0.0
    total = 0.0
    if health.stress_level is not None:
        total += health.stress_level * 0.4
    if health.mood is not None:
        total += (10 - health.mood) * 0.1
    return total


def _health_burnout(health: HealthSignal | None) -> float:
    if health is None:
        return 0.0
    total = 0.0
    if health.stress_level is not None:
        total += health.stress_level * 0.2
    if health.mood is not None:
        total += (10 - health.mood) * 0.1
    if health.sleep_hours is not None:
        total += max(0.0, 7 - health.sleep_hours) * 0.3
    return total

"""Burnout detector: sustained overload turns into break and load-shedding suggestions."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import date, datetime, timedelta

from lifeos.optimization.detectors.thresholds import DetectorThresholds
from lifeos.optimization.models import (
    CalendarEvent,
    OptimizationSuggestion,
    SuggestionAction,
    SuggestionType,
    UserPreferences,
    WorkloadAnalysis,
)
from lifeos.optimization.time_windows import align_up

SOURCE = "burnout"


def detect_burnout_risk(
    events: Sequence[CalendarEvent],
    preferences: UserPreferences,
    workload: WorkloadAnalysis | None = None,
    signal: None = None,
    *,
    thresholds: DetectorThresholds,
    not_before: datetime | None = None,
) -> list[OptimizationSuggestion]:
    """Emit a break insertion plus consolidation and redistribution advice.

    Priority and confidence scale with the risk band. Every suggestion carries
    the triggering ``burnout_risk`` so the policy gate can evaluate it. The
    break never starts before ``not_before``.
    """
    if workload is None or workload.burnout_risk < thresholds.burnout_threshold:
        return []

    risk = workload.burnout_risk
    critical = risk >= thresholds.burnout_critical_threshold
    priority = 10 if critical else max(1, min(10, round(risk)))
    confidence = 0.9 if critical else 0.7
    band = "critical" if critical else "elevated"

    meetings = [e for e in events if e.is_meeting]
    busiest = _busiest_day(meetings, preferences)
    break_start = (
        _first_gap(meetings, busiest, preferences, thresholds, not_before)
        if busiest
        else None
    )
    if break_start is None:
        break_start = (not_before or workload.generated_at) + timedelta(hours=24)
    break_end = break_start + timedelta(minutes=thresholds.break_minutes)

    common = {
        "type": SuggestionType.SUGGEST_BREAK,
        "confidence": confidence,
        "burnout_risk": risk,
        "source": SOURCE,
    }
    day_label = busiest.isoformat() if busiest else "upcoming"
    return [
        OptimizationSuggestion(
            id=OptimizationSuggestion.fingerprint(
                SuggestionType.SUGGEST_BREAK.value,
                "break",
                break_start.isoformat(),
                break_end.isoformat(),
            ),
            action=SuggestionAction.CREATE_BLOCK,
            priority=priority,
            reason=f"Burnout risk is {band} ({risk:.1f}/10)",
            reasoning=(
                f"A protected {thresholds.break_minutes}-minute break on the "
                "busiest day interrupts a long run of meetings."
            ),
            impact="Recovery time during the heaviest stretch of the week",
            proposed_start=break_start,
            proposed_end=break_end,
            block_title="Break",
            estimated_minutes_saved=float(thresholds.break_minutes),
            **common,
        ),
        OptimizationSuggestion(
            id=OptimizationSuggestion.fingerprint(
                SuggestionType.SUGGEST_BREAK.value, "consolidate", day_label
            ),
            action=SuggestionAction.NONE,
            priority=max(1, priority - 1),
            reason="Consolidate meetings to free up contiguous time",
            reasoning=(
                f"Meetings on {day_label} are fragmented; grouping them leaves "
                "longer recovery and focus periods."
            ),
            impact="Fewer context switches",
            **common,
        ),
        OptimizationSuggestion(
            id=OptimizationSuggestion.fingerprint(
                SuggestionType.SUGGEST_BREAK.value,
                "redistribute",
                f"{workload.weekly_hours:.1f}",
            ),
            action=SuggestionAction.NONE,
            priority=max(1, priority - 2),
            reason="Redistribute workload across the week",
            reasoning=(
                f"{workload.weekly_hours:.1f} scheduled hours this week; moving "
                "non-urgent meetings to lighter days lowers sustained load."
            ),
            impact="Lower weekly stress peak",
            **common,
        ),
    ]


def _busiest_day(
    meetings: Sequence[CalendarEvent], preferences: UserPreferences
) -> date | None:
    tz = preferences.tz
    minutes: dict[date, float] = defaultdict(float)
    for event in meetings:
        minutes[event.start.astimezone(tz).date()] += event.duration_minutes
    if not minutes:
        return None
    # earliest day wins ties
    return max(sorted(minutes), key=lambda day: minutes[day])


def _first_gap(
    meetings: Sequence[CalendarEvent],
    day: date,
    preferences: UserPreferences,
    thresholds: DetectorThresholds,
    not_before: datetime | None,
) -> datetime | None:
    tz = preferences.tz
    work_start, work_end = preferences.working_hours.as_window().on(day, tz)
    needed = timedelta(minutes=thresholds.break_minutes)
    cursor = work_start
    if not_before is not None:
        cursor = max(cursor, align_up(not_before, thresholds.slot_granularity_minutes))
    for event in sorted(meetings, key=lambda e: e.start):
        if event.end <= work_start or event.start >= work_end:
            continue
        if event.start - cursor >= needed:
            return cursor
        cursor = max(cursor, event.end)
    if work_end - cursor >= needed:
        return cursor
    return None

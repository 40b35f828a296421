"""Focus-time detector: meetings that start inside protected focus blocks."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

from lifeos.optimization.detectors._slots import is_free
from lifeos.optimization.detectors.thresholds import DetectorThresholds
from lifeos.optimization.models import (
    CalendarEvent,
    OptimizationSuggestion,
    SuggestionAction,
    SuggestionType,
    UserPreferences,
    WorkloadAnalysis,
)
from lifeos.optimization.time_windows import TimeWindow, align_up, local_time_of_day

SOURCE = "focus"
PRIORITY = 8


def detect_focus_violations(
    events: Sequence[CalendarEvent],
    preferences: UserPreferences,
    workload: WorkloadAnalysis | None = None,
    signal: None = None,
    *,
    thresholds: DetectorThresholds,
) -> list[OptimizationSuggestion]:
    """Flag meetings that start during a focus block and look for a later slot.

    When no conflict-free slot exists the suggestion is informational only.
    Confidence stays below the auto-approval bar so moves always need consent.
    """
    focus_windows = preferences.focus_windows
    if not focus_windows:
        return []
    tz = preferences.tz

    suggestions: list[OptimizationSuggestion] = []
    for event in events:
        if not event.is_meeting:
            continue
        start_tod = local_time_of_day(event.start, tz).replace(second=0, microsecond=0)
        window = next((w for w in focus_windows if w.contains(start_tod)), None)
        if window is None:
            continue

        slot = _find_alternative(event, events, focus_windows, preferences, thresholds)
        reason = f"'{event.title}' interrupts focus time ({window})"
        if slot is None:
            suggestions.append(
                OptimizationSuggestion(
                    id=OptimizationSuggestion.fingerprint(
                        SuggestionType.BLOCK_FOCUS_TIME.value, event.id, "informational"
                    ),
                    type=SuggestionType.BLOCK_FOCUS_TIME,
                    action=SuggestionAction.NONE,
                    priority=PRIORITY,
                    confidence=thresholds.focus_confidence,
                    reason=reason,
                    reasoning="No conflict-free slot was found later the same day.",
                    impact="Consider declining or shortening this meeting",
                    event_id=event.id,
                    source=SOURCE,
                )
            )
            continue

        new_start, new_end = slot
        suggestions.append(
            OptimizationSuggestion(
                id=OptimizationSuggestion.fingerprint(
                    SuggestionType.BLOCK_FOCUS_TIME.value,
                    event.id,
                    new_start.isoformat(),
                    new_end.isoformat(),
                ),
                type=SuggestionType.BLOCK_FOCUS_TIME,
                action=SuggestionAction.MOVE_EVENT,
                priority=PRIORITY,
                confidence=thresholds.focus_confidence,
                reason=reason,
                reasoning=(
                    f"Moving it to {new_start.astimezone(tz):%H:%M} keeps the "
                    "focus block uninterrupted."
                ),
                impact=f"Protects {window.minutes / 60:.1f}h of deep work",
                event_id=event.id,
                proposed_start=new_start,
                proposed_end=new_end,
                source=SOURCE,
                metadata={"focus_window": str(window)},
            )
        )
    return suggestions


def _find_alternative(
    event: CalendarEvent,
    events: Sequence[CalendarEvent],
    focus_windows: list[TimeWindow],
    preferences: UserPreferences,
    thresholds: DetectorThresholds,
) -> tuple[datetime, datetime] | None:
    tz = preferences.tz
    duration = event.duration
    step = timedelta(minutes=max(thresholds.slot_granularity_minutes, 1))
    candidate = align_up(
        event.start + timedelta(minutes=thresholds.focus_reschedule_offset_minutes),
        thresholds.slot_granularity_minutes,
    )
    limit = event.start + timedelta(hours=thresholds.focus_search_hours)
    while candidate <= limit:
        end = candidate + duration
        in_focus = any(w.overlap_minutes(candidate, end, tz) > 0 for w in focus_windows)
        if not in_focus and is_free(candidate, end, events, ignore_id=event.id):
            return candidate, end
        candidate += step
    return None

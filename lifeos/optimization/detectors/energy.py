"""Energy-alignment detector: important meetings scheduled in low-energy time."""

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
from lifeos.optimization.time_windows import align_up, local_time_of_day

SOURCE = "energy"
PRIORITY = 7


def detect_energy_misalignment(
    events: Sequence[CalendarEvent],
    preferences: UserPreferences,
    workload: WorkloadAnalysis | None = None,
    signal: None = None,
    *,
    thresholds: DetectorThresholds,
    not_before: datetime | None = None,
) -> list[OptimizationSuggestion]:
    """Propose moving important low-energy meetings into a high-energy window.

    Only meetings that *start* inside a low-energy window are considered. The
    proposal is the conflict-free, slot-aligned start closest to the original
    one, searched across high-energy windows on the same day and the following
    ``energy_search_days``. Meetings without any free slot are left alone.
    """
    tz = preferences.tz
    low_windows = preferences.low_energy_windows
    high_windows = preferences.high_energy_windows
    if not low_windows or not high_windows:
        return []

    suggestions: list[OptimizationSuggestion] = []
    for event in events:
        if not event.is_meeting or not _is_important(event, thresholds):
            continue
        start_tod = local_time_of_day(event.start, tz)
        low = next((w for w in low_windows if w.contains(start_tod)), None)
        if low is None:
            continue

        slot = _nearest_high_energy_slot(
            event, events, preferences, thresholds, not_before=not_before
        )
        if slot is None:
            continue

        low_minutes = sum(w.overlap_minutes(event.start, event.end, tz) for w in low_windows)
        high_minutes = sum(
            w.overlap_minutes(event.start, event.end, tz) for w in high_windows
        )
        poor = low_minutes >= event.duration_minutes / 2 and high_minutes == 0
        confidence = (
            thresholds.energy_poor_confidence
            if poor
            else thresholds.energy_marginal_confidence
        )
        new_start, new_end = slot
        local_new = new_start.astimezone(tz)
        suggestions.append(
            OptimizationSuggestion(
                id=OptimizationSuggestion.fingerprint(
                    SuggestionType.ENERGY_ALIGNMENT.value,
                    event.id,
                    new_start.isoformat(),
                    new_end.isoformat(),
                ),
                type=SuggestionType.ENERGY_ALIGNMENT,
                action=SuggestionAction.MOVE_EVENT,
                priority=PRIORITY,
                confidence=confidence,
                reason=f"'{event.title}' is scheduled during a low-energy window ({low})",
                reasoning=(
                    "Important meetings go better in high-energy time; "
                    f"{local_new:%a %H:%M} is free and inside a high-energy window."
                ),
                impact="Better focus and decision quality for this meeting",
                event_id=event.id,
                proposed_start=new_start,
                proposed_end=new_end,
                source=SOURCE,
            )
        )
    return suggestions


def _is_important(event: CalendarEvent, thresholds: DetectorThresholds) -> bool:
    return (
        event.duration_minutes >= thresholds.important_meeting_minutes
        or len(event.attendees) >= thresholds.important_meeting_attendees
    )


def _nearest_high_energy_slot(
    event: CalendarEvent,
    events: Sequence[CalendarEvent],
    preferences: UserPreferences,
    thresholds: DetectorThresholds,
    *,
    not_before: datetime | None,
) -> tuple[datetime, datetime] | None:
    tz = preferences.tz
    duration = event.duration
    step = timedelta(minutes=max(thresholds.slot_granularity_minutes, 1))
    first_day = event.start.astimezone(tz).date()

    best: tuple[float, datetime] | None = None
    for offset in range(thresholds.energy_search_days + 1):
        day = first_day + timedelta(days=offset)
        for window in preferences.high_energy_windows:
            window_start, window_end = window.on(day, tz)
            candidate = align_up(window_start, thresholds.slot_granularity_minutes)
            while candidate + duration <= window_end:
                if candidate != event.start and (
                    not_before is None or candidate >= not_before
                ):
                    if is_free(candidate, candidate + duration, events, ignore_id=event.id):
                        distance = abs((candidate - event.start).total_seconds())
                        if best is None or distance < best[0]:
                            best = (distance, candidate)
                candidate += step
    if best is None:
        return None
    return best[1], best[1] + duration

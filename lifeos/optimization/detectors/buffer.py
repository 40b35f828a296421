"""Buffer detector: back-to-back meetings without breathing room."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import timedelta

from lifeos.optimization.detectors.thresholds import DetectorThresholds
from lifeos.optimization.models import (
    CalendarEvent,
    OptimizationSuggestion,
    SuggestionAction,
    SuggestionType,
    UserPreferences,
    WorkloadAnalysis,
)

SOURCE = "buffer"
PRIORITY = 6


def detect_buffer_deficiency(
    events: Sequence[CalendarEvent],
    preferences: UserPreferences,
    workload: WorkloadAnalysis | None = None,
    signal: None = None,
    *,
    thresholds: DetectorThresholds,
) -> list[OptimizationSuggestion]:
    """Emit one add-buffer suggestion per adjacent meeting pair closer than ``buffer_time``."""
    if preferences.buffer_time <= 0:
        return []

    buffer = timedelta(minutes=preferences.buffer_time)
    meetings = sorted((e for e in events if e.is_meeting), key=lambda e: (e.start, e.end))

    block_starts = {e.start for e in events if e.is_active and e.is_generated_block}

    suggestions: list[OptimizationSuggestion] = []
    for current, following in zip(meetings, meetings[1:]):
        gap = following.start - current.end
        if gap >= buffer or current.end in block_starts:
            continue
        gap_minutes = gap.total_seconds() / 60
        block_start = current.end
        block_end = current.end + buffer
        suggestions.append(
            OptimizationSuggestion(
                id=OptimizationSuggestion.fingerprint(
                    SuggestionType.ADD_BUFFER.value,
                    current.id,
                    following.id,
                    block_start.isoformat(),
                    block_end.isoformat(),
                ),
                type=SuggestionType.ADD_BUFFER,
                action=SuggestionAction.CREATE_BLOCK,
                priority=PRIORITY,
                confidence=thresholds.buffer_confidence,
                reason=(
                    f"Only {max(gap_minutes, 0):.0f} min between '{current.title}' "
                    f"and '{following.title}'"
                ),
                reasoning=(
                    f"A {preferences.buffer_time}-minute buffer leaves time to reset "
                    "and prepare between meetings."
                ),
                impact="Reduces context-switch fatigue and late starts",
                event_id=current.id,
                proposed_start=block_start,
                proposed_end=block_end,
                block_title="Buffer",
                estimated_minutes_saved=float(preferences.buffer_time),
                source=SOURCE,
                metadata={"after_event": current.id, "before_event": following.id},
            )
        )
    return suggestions

"""Travel detector: flight delays, heavy commute traffic and disruptive weather."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta

from lifeos.optimization.detectors.thresholds import DetectorThresholds
from lifeos.optimization.models import (
    TRAVEL_ADJUSTMENT_KEY,
    TRAVEL_BUFFER_KEY,
    CalendarEvent,
    FlightState,
    FlightStatus,
    OptimizationSuggestion,
    RouteConditions,
    SuggestionAction,
    SuggestionType,
    UserPreferences,
    WeatherConditions,
    WeatherImpact,
    WorkloadAnalysis,
)

SOURCE = "travel"


@dataclass(frozen=True)
class TravelSignals:
    """Live travel inputs polled from the flight, traffic and weather collaborators."""

    flights: tuple[FlightStatus, ...] = ()
    routes: tuple[RouteConditions, ...] = ()
    weather: tuple[WeatherConditions, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.flights and not self.routes and not self.weather


def detect_travel_disruption(
    events: Sequence[CalendarEvent],
    preferences: UserPreferences,
    workload: WorkloadAnalysis | None = None,
    signal: TravelSignals | None = None,
    *,
    thresholds: DetectorThresholds,
) -> list[OptimizationSuggestion]:
    if signal is None or signal.is_empty:
        return []
    suggestions: list[OptimizationSuggestion] = []
    for flight in signal.flights:
        suggestions.extend(_flight_suggestions(events, preferences, flight, thresholds))
    for conditions in signal.routes:
        suggestions.extend(_commute_suggestions(events, conditions, thresholds))
    for conditions in signal.weather:
        suggestions.extend(_weather_suggestions(events, conditions, thresholds))
    return suggestions


def _events_after_arrival(
    events: Sequence[CalendarEvent], flight: FlightStatus, window_minutes: int
) -> list[CalendarEvent]:
    window_start = flight.scheduled_arrival
    window_end = window_start + timedelta(minutes=window_minutes)
    return [
        e
        for e in events
        if e.is_meeting and window_start <= e.start <= window_end
    ]


def _flight_suggestions(
    events: Sequence[CalendarEvent],
    preferences: UserPreferences,
    flight: FlightStatus,
    thresholds: DetectorThresholds,
) -> list[OptimizationSuggestion]:
    affected = _events_after_arrival(events, flight, thresholds.flight_window_minutes)
    if not affected:
        return []

    if flight.status == FlightState.CANCELLED:
        return [
            OptimizationSuggestion(
                id=OptimizationSuggestion.fingerprint(
                    SuggestionType.RESCHEDULE.value, event.id, flight.flight_number, "cancelled"
                ),
                type=SuggestionType.RESCHEDULE,
                action=SuggestionAction.NONE,
                priority=8,
                confidence=0.6,
                reason=f"Flight {flight.flight_number} was cancelled",
                reasoning=f"'{event.title}' was planned right after the scheduled arrival.",
                impact="Reschedule once a replacement flight is known",
                event_id=event.id,
                source=SOURCE,
            )
            for event in affected
        ]

    delay = flight.arrival_delay_minutes
    marker_prefix = f"{flight.flight_number}:"
    suggestions: list[OptimizationSuggestion] = []
    for event in affected:
        if event.metadata.get(TRAVEL_ADJUSTMENT_KEY, "").startswith(marker_prefix):
            continue
        if delay > thresholds.flight_reschedule_delay_minutes:
            shift = timedelta(minutes=delay)
            new_start = event.start + shift
            new_end = event.end + shift
            suggestions.append(
                OptimizationSuggestion(
                    id=OptimizationSuggestion.fingerprint(
                        SuggestionType.TRAVEL_ADJUSTMENT.value,
                        event.id,
                        flight.flight_number,
                        new_start.isoformat(),
                        new_end.isoformat(),
                    ),
                    type=SuggestionType.TRAVEL_ADJUSTMENT,
                    action=SuggestionAction.MOVE_EVENT,
                    priority=10,
                    confidence=0.95,
                    reason=(
                        f"Flight {flight.flight_number} arrives {delay:.0f} min late"
                    ),
                    reasoning=(
                        f"'{event.title}' starts within "
                        f"{thresholds.flight_window_minutes} min of the scheduled "
                        "arrival; shifting it by the delay keeps the same margin."
                    ),
                    impact="Avoids missing or rushing into the meeting",
                    event_id=event.id,
                    proposed_start=new_start,
                    proposed_end=new_end,
                    source=SOURCE,
                    metadata={
                        TRAVEL_ADJUSTMENT_KEY: f"{flight.flight_number}:{delay:.0f}"
                    },
                )
            )
        elif (
            delay > thresholds.flight_remote_delay_minutes
            and preferences.travel.allow_remote_alternatives
        ):
            suggestions.append(
                OptimizationSuggestion(
                    id=OptimizationSuggestion.fingerprint(
                        SuggestionType.TRAVEL_ADJUSTMENT.value,
                        event.id,
                        flight.flight_number,
                        "remote",
                    ),
                    type=SuggestionType.TRAVEL_ADJUSTMENT,
                    action=SuggestionAction.NONE,
                    priority=7,
                    confidence=0.7,
                    reason=(
                        f"Flight {flight.flight_number} arrives {delay:.0f} min late"
                    ),
                    reasoning="The delay is short; joining remotely avoids a reschedule.",
                    impact="Keeps the meeting on time",
                    event_id=event.id,
                    source=SOURCE,
                )
            )
    return suggestions


def _commute_suggestions(
    events: Sequence[CalendarEvent],
    conditions: RouteConditions,
    thresholds: DetectorThresholds,
) -> list[OptimizationSuggestion]:
    if conditions.traffic_factor <= thresholds.traffic_factor_threshold:
        return []

    destination = conditions.destination.casefold()
    horizon = conditions.observed_at + timedelta(
        minutes=thresholds.commute_lookahead_minutes
    )
    existing = {
        e.metadata.get(TRAVEL_BUFFER_KEY)
        for e in events
        if e.is_active and e.is_generated_block
    }
    extra = math.ceil(conditions.extra_minutes)
    if extra <= 0:
        return []

    suggestions: list[OptimizationSuggestion] = []
    for event in events:
        if not event.is_meeting or not event.location:
            continue
        if destination not in event.location.casefold():
            continue
        if not conditions.observed_at < event.start <= horizon:
            continue
        marker = f"{event.id}:{conditions.route_id}"
        if marker in existing:
            continue
        block_end = event.start - timedelta(minutes=conditions.normal_duration_minutes)
        block_start = block_end - timedelta(minutes=extra)
        suggestions.append(
            OptimizationSuggestion(
                id=OptimizationSuggestion.fingerprint(
                    SuggestionType.TRAVEL_ADJUSTMENT.value,
                    "commute",
                    marker,
                    block_start.isoformat(),
                    block_end.isoformat(),
                ),
                type=SuggestionType.TRAVEL_ADJUSTMENT,
                action=SuggestionAction.CREATE_BLOCK,
                priority=8,
                confidence=0.85,
                reason=(
                    f"Traffic to {conditions.destination} is "
                    f"{conditions.traffic_factor:.1f}x normal"
                ),
                reasoning=(
                    f"Leave {extra} min earlier to reach '{event.title}' on time."
                ),
                impact="Arrive on time despite traffic",
                event_id=event.id,
                proposed_start=block_start,
                proposed_end=block_end,
                block_title=f"Leave early for {event.title}",
                estimated_minutes_saved=float(extra),
                source=SOURCE,
                metadata={TRAVEL_BUFFER_KEY: marker},
            )
        )
    return suggestions


def _weather_suggestions(
    events: Sequence[CalendarEvent],
    conditions: WeatherConditions,
    thresholds: DetectorThresholds,
) -> list[OptimizationSuggestion]:
    """Storms and snow suggest going virtual; rain adds a travel buffer."""
    if conditions.impact not in (WeatherImpact.HIGH, WeatherImpact.MEDIUM):
        return []

    location = conditions.location.casefold()
    horizon = conditions.observed_at + timedelta(
        minutes=thresholds.weather_lookahead_minutes
    )
    existing = {
        e.metadata.get(TRAVEL_BUFFER_KEY)
        for e in events
        if e.is_active and e.is_generated_block
    }

    suggestions: list[OptimizationSuggestion] = []
    for event in events:
        if not event.is_meeting or not event.location:
            continue
        if event.location.casefold() != location:
            continue
        if not conditions.observed_at < event.start <= horizon:
            continue

        if conditions.impact == WeatherImpact.HIGH:
            suggestions.append(
                OptimizationSuggestion(
                    id=OptimizationSuggestion.fingerprint(
                        SuggestionType.TRAVEL_ADJUSTMENT.value,
                        "weather",
                        event.id,
                        conditions.condition.casefold(),
                    ),
                    type=SuggestionType.TRAVEL_ADJUSTMENT,
                    action=SuggestionAction.NONE,
                    priority=8,
                    confidence=0.7,
                    reason=f"{conditions.condition} expected at {event.location}",
                    reasoning=(
                        f"Consider joining '{event.title}' virtually, or allow extra "
                        "travel time and check transportation status."
                    ),
                    impact="Avoids travelling through severe weather",
                    event_id=event.id,
                    source=SOURCE,
                )
            )
            continue

        marker = f"{event.id}:weather"
        if marker in existing:
            continue
        block_end = event.start
        block_start = block_end - timedelta(minutes=thresholds.weather_rain_buffer_minutes)
        suggestions.append(
            OptimizationSuggestion(
                id=OptimizationSuggestion.fingerprint(
                    SuggestionType.TRAVEL_ADJUSTMENT.value,
                    "weather",
                    marker,
                    block_start.isoformat(),
                    block_end.isoformat(),
                ),
                type=SuggestionType.TRAVEL_ADJUSTMENT,
                action=SuggestionAction.CREATE_BLOCK,
                priority=6,
                confidence=0.75,
                reason=f"{conditions.condition} expected at {event.location}",
                reasoning=(
                    f"Leave {thresholds.weather_rain_buffer_minutes} min earlier for "
                    f"'{event.title}' and keep a backup way to get there."
                ),
                impact="Arrive on time despite the weather",
                event_id=event.id,
                proposed_start=block_start,
                proposed_end=block_end,
                block_title=f"Weather buffer for {event.title}",
                estimated_minutes_saved=float(thresholds.weather_rain_buffer_minutes),
                source=SOURCE,
                metadata={TRAVEL_BUFFER_KEY: marker},
            )
        )
    return suggestions

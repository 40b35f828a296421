"""Tunable heuristic constants handed to the detectors."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DetectorThresholds:
    """Detector parameters. Defaults are reasonable heuristics, not business rules."""

    important_meeting_minutes: int = 30
    important_meeting_attendees: int = 2
    energy_poor_confidence: float = 0.85
    energy_marginal_confidence: float = 0.6
    energy_search_days: int = 3
    slot_granularity_minutes: int = 15
    buffer_confidence: float = 0.8
    focus_confidence: float = 0.75
    focus_reschedule_offset_minutes: int = 120
    focus_search_hours: int = 8
    burnout_threshold: float = 6.0
    burnout_critical_threshold: float = 8.0
    break_minutes: int = 30
    flight_window_minutes: int = 120
    flight_reschedule_delay_minutes: int = 30
    flight_remote_delay_minutes: int = 15
    traffic_factor_threshold: float = 1.5
    commute_lookahead_minutes: int = 180
    weather_lookahead_minutes: int = 240
    weather_rain_buffer_minutes: int = 30

"""Calendar optimization data models."""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime, time, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from lifeos.optimization.time_windows import (
    TimeWindow,
    parse_time_of_day,
    parse_windows,
    resolve_timezone,
)

# Metadata keys written to calendar events by the optimizer
GENERATED_BLOCK_KEY = "lifeos_block"
TRAVEL_ADJUSTMENT_KEY = "lifeos_travel_adjustment"
TRAVEL_BUFFER_KEY = "lifeos_travel_buffer"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class EventStatus(str, Enum):
    """Calendar event status."""

    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"


class AutomationLevel(str, Enum):
    """How much the optimizer may change without asking."""

    MINIMAL = "minimal"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class SuggestionType(str, Enum):
    """Kinds of optimization suggestions."""

    RESCHEDULE = "reschedule"
    ADD_BUFFER = "add-buffer"
    BLOCK_FOCUS_TIME = "block-focus-time"
    SUGGEST_BREAK = "suggest-break"
    TRAVEL_ADJUSTMENT = "travel-adjustment"
    ENERGY_ALIGNMENT = "energy-alignment"


class SuggestionAction(str, Enum):
    """The calendar mutation a suggestion performs when applied."""

    MOVE_EVENT = "move-event"
    CREATE_BLOCK = "create-block"
    NONE = "none"


class CalendarEvent(BaseModel):
    """Normalized, timezone-aware calendar event snapshot."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str | None = None
    location: str | None = None
    start: datetime
    end: datetime
    attendees: tuple[str, ...] = ()
    status: EventStatus = EventStatus.CONFIRMED
    metadata: dict[str, str] = Field(default_factory=dict)

    @field_validator("start", "end")
    @classmethod
    def require_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError("Event timestamps must be timezone-aware")
        return value

    @model_validator(mode="after")
    def check_ordering(self) -> CalendarEvent:
        if self.end <= self.start:
            raise ValueError(f"Event '{self.id}' must end after it starts")
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_minutes(self) -> float:
        return self.duration.total_seconds() / 60

    @property
    def is_active(self) -> bool:
        return self.status != EventStatus.CANCELLED

    @property
    def is_generated_block(self) -> bool:
        """True for buffers, breaks and travel blocks created by the optimizer."""
        return GENERATED_BLOCK_KEY in self.metadata

    @property
    def is_meeting(self) -> bool:
        return self.is_active and not self.is_generated_block

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return start < self.end and end > self.start


class WorkingHours(BaseModel):
    start: str = "09:00"
    end: str = "17:00"
    timezone: str = "UTC"

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        parse_time_of_day(value)
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        resolve_timezone(value)
        return value

    @property
    def start_time(self) -> time:
        return parse_time_of_day(self.start)

    @property
    def end_time(self) -> time:
        return parse_time_of_day(self.end)

    def as_window(self) -> TimeWindow:
        return TimeWindow.parse(f"{self.start}-{self.end}")


class EnergyPattern(BaseModel):
    high_energy: list[str] = Field(
        default_factory=lambda: ["09:00-11:00", "14:00-16:00"]
    )
    low_energy: list[str] = Field(
        default_factory=lambda: ["13:00-14:00", "16:00-17:00"]
    )

    @field_validator("high_energy", "low_energy")
    @classmethod
    def validate_windows(cls, value: list[str]) -> list[str]:
        parse_windows(value)
        return value


class NotificationPreferences(BaseModel):
    burnout_warnings: bool = True
    optimization_suggestions: bool = True
    travel_alerts: bool = True


class TravelPreferences(BaseModel):
    auto_reschedule_on_delay: bool = True
    allow_remote_alternatives: bool = True


class UserPreferences(BaseModel):
    """User scheduling preferences (single current version)."""

    working_hours: WorkingHours = Field(default_factory=WorkingHours)
    energy_pattern: EnergyPattern = Field(default_factory=EnergyPattern)
    preferred_meeting_duration: int = Field(default=30, gt=0)
    buffer_time: int = Field(default=15, ge=0, description="Minutes between meetings")
    focus_time_blocks: list[str] = Field(default_factory=list)
    automation_level: AutomationLevel = AutomationLevel.MODERATE
    notifications: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )
    travel: TravelPreferences = Field(default_factory=TravelPreferences)
    require_approval_for: list[SuggestionType] = Field(default_factory=list)

    @field_validator("focus_time_blocks")
    @classmethod
    def validate_focus_blocks(cls, value: list[str]) -> list[str]:
        parse_windows(value)
        return value

    @classmethod
    def default(cls) -> UserPreferences:
        """Documented defaults used when nothing is stored."""
        return cls()

    @property
    def tz(self):
        return resolve_timezone(self.working_hours.timezone)

    @property
    def high_energy_windows(self) -> list[TimeWindow]:
        return parse_windows(self.energy_pattern.high_energy)

    @property
    def low_energy_windows(self) -> list[TimeWindow]:
        return parse_windows(self.energy_pattern.low_energy)

    @property
    def focus_windows(self) -> list[TimeWindow]:
        return parse_windows(self.focus_time_blocks)


class HealthSignal(BaseModel):
    """Optional wellbeing inputs from the health collaborator."""

    stress_level: float | None = Field(default=None, ge=0, le=10)
    mood: float | None = Field(default=None, ge=0, le=10, description="10 = best")
    sleep_hours: float | None = Field(default=None, ge=0, le=24)


class WorkloadAnalysis(BaseModel):
    """Derived workload metrics for one optimization pass."""

    model_config = ConfigDict(frozen=True)

    weekly_hours: float = Field(default=0.0, ge=0)
    meeting_density: float = Field(default=0.0, ge=0)
    stress_level: float = Field(default=0.0, ge=0, le=10)
    burnout_risk: float = Field(default=0.0, ge=0, le=10)
    focus_hours_per_day: float = Field(default=0.0, ge=0)
    longest_meeting_streak: int = Field(default=0, ge=0)
    evening_meeting_ratio: float = Field(default=0.0, ge=0, le=1)
    generated_at: datetime = Field(default_factory=_utcnow)


class FlightState(str, Enum):
    SCHEDULED = "scheduled"
    BOARDING = "boarding"
    DEPARTED = "departed"
    DELAYED = "delayed"
    CANCELLED = "cancelled"
    ARRIVED = "arrived"


class FlightStatus(BaseModel):
    """Normalized flight status from the flight-status collaborator."""

    model_config = ConfigDict(frozen=True)

    flight_number: str
    status: FlightState = FlightState.SCHEDULED
    scheduled_arrival: datetime
    estimated_arrival: datetime | None = None
    delay_minutes: int | None = Field(default=None, ge=0)
    delay_reason: str | None = None
    arrival_airport: str | None = None

    @property
    def arrival_delay_minutes(self) -> float:
        if self.delay_minutes is not None:
            return float(self.delay_minutes)
        if self.estimated_arrival is not None:
            delta = self.estimated_arrival - self.scheduled_arrival
            return max(0.0, delta.total_seconds() / 60)
        return 0.0


class CommuteRoute(BaseModel):
    """A saved commute route the monitor polls for traffic."""

    route_id: str
    origin: str
    destination: str
    normal_duration_minutes: float = Field(gt=0)


class RouteConditions(BaseModel):
    """Live conditions for a commute route."""

    model_config = ConfigDict(frozen=True)

    route_id: str
    origin: str
    destination: str
    normal_duration_minutes: float = Field(gt=0)
    live_duration_minutes: float = Field(gt=0)
    observed_at: datetime = Field(default_factory=_utcnow)

    @property
    def traffic_factor(self) -> float:
        return self.live_duration_minutes / self.normal_duration_minutes

    @property
    def extra_minutes(self) -> float:
        return max(0.0, self.live_duration_minutes - self.normal_duration_minutes)


class WeatherImpact(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WeatherConditions(BaseModel):
    """Current weather at a meeting location and its travel impact."""

    model_config = ConfigDict(frozen=True)

    location: str
    condition: str
    description: str = ""
    impact: WeatherImpact = WeatherImpact.NONE
    observed_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def assess(cls, condition: str) -> WeatherImpact:
        """Storms and snow disrupt travel badly; rain slows it down."""
        lowered = condition.casefold()
        if "storm" in lowered or "snow" in lowered:
            return WeatherImpact.HIGH
        if "rain" in lowered or "drizzle" in lowered:
            return WeatherImpact.MEDIUM
        return WeatherImpact.NONE


class TravelWatchlist(BaseModel):
    """Flights and routes tracked for a user."""

    flight_numbers: list[str] = Field(default_factory=list)
    commute_routes: list[CommuteRoute] = Field(default_factory=list)


class OptimizationSuggestion(BaseModel):
    """A typed, ranked scheduling suggestion. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: SuggestionType
    action: SuggestionAction
    priority: int = Field(ge=1, le=10)
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str
    reasoning: str = ""
    impact: str = ""
    event_id: str | None = None
    proposed_start: datetime | None = None
    proposed_end: datetime | None = None
    block_title: str | None = None
    burnout_risk: float | None = None
    estimated_minutes_saved: float = 0.0
    source: str = ""
    metadata: dict[str, str] = Field(default_factory=dict)
    auto_approve: bool = False
    created_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def check_action(self) -> OptimizationSuggestion:
        if self.action != SuggestionAction.NONE:
            if self.proposed_start is None or self.proposed_end is None:
                raise ValueError("Actionable suggestions need a proposed time")
            if self.proposed_end <= self.proposed_start:
                raise ValueError("Proposed end must be after proposed start")
        if self.action == SuggestionAction.MOVE_EVENT and not self.event_id:
            raise ValueError("move-event suggestions must reference an event")
        return self

    @property
    def is_actionable(self) -> bool:
        return self.action != SuggestionAction.NONE

    @property
    def score(self) -> float:
        return self.priority * self.confidence

    @property
    def lock_key(self) -> str:
        """Key used to serialize calendar mutations."""
        return self.event_id or self.id

    @staticmethod
    def fingerprint(*parts: Any) -> str:
        """Deterministic id so re-derived suggestions collapse to one entry."""
        raw = "|".join("" if part is None else str(part) for part in parts)
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]


class OptimizationStats(BaseModel):
    """Cumulative optimization outcome counters."""

    total_suggestions: int = 0
    applied_suggestions: int = 0
    rejected_suggestions: int = 0
    minutes_saved: float = 0.0
    burnout_prevented: int = 0
    focus_hours_protected: float = 0.0
    last_run_at: datetime | None = None


class SuggestionHistory(BaseModel):
    """Ledgers of resolved suggestion ids (bounded, most recent last)."""

    applied: list[str] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)

    def remember(self, bucket: str, suggestion_id: str, limit: int) -> None:
        ledger: list[str] = getattr(self, bucket)
        if suggestion_id in ledger:
            ledger.remove(suggestion_id)
        ledger.append(suggestion_id)
        del ledger[:-limit]

    def is_resolved(self, suggestion_id: str) -> bool:
        return suggestion_id in self.applied or suggestion_id in self.rejected


class ApplyStatus(str, Enum):
    APPLIED = "applied"
    ALREADY_RESOLVED = "already_resolved"
    FAILED = "failed"


class ApplyResult(BaseModel):
    suggestion_id: str
    status: ApplyStatus
    error: str | None = None
    event_id: str | None = None

    @property
    def success(self) -> bool:
        return self.status != ApplyStatus.FAILED


class OptimizationRun(BaseModel):
    """Outcome of one full optimization pass."""

    suggestions: list[OptimizationSuggestion] = Field(default_factory=list)
    auto_applied: list[str] = Field(default_factory=list)
    queued: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    detector_failures: dict[str, str] = Field(default_factory=dict)
    workload: WorkloadAnalysis | None = None
    summary: str = ""
    completed_at: datetime = Field(default_factory=_utcnow)

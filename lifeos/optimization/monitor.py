"""
Continuous monitor: periodic travel and burnout checks with auto-correction
"""

from __future__ import annotations

import asyncio
from datetime import UTC, date, datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field

from lifeos.integrations.base.protocols import (
    FlightStatusCollaborator,
    Notifier,
    TrafficCollaborator,
    WeatherCollaborator,
)
from lifeos.optimization.detectors import (
    DetectorThresholds,
    detect_burnout_risk,
    detect_travel_disruption,
)
from lifeos.optimization.engine import ApplicationEngine
from lifeos.optimization.errors import DataUnavailable
from lifeos.optimization.models import (
    ApplyStatus,
    AutomationLevel,
    CalendarEvent,
    UserPreferences,
    WorkloadAnalysis,
)
from lifeos.optimization.policy import PolicyGate
from lifeos.optimization.ranker import merge
from lifeos.optimization.runner import (
    collect_travel_signals,
    run_detectors,
    weather_locations,
)
from lifeos.optimization.source import EventSource
from lifeos.optimization.store import ProfileStore, SuggestionStore
from lifeos.optimization.workload import compute_workload
from lifeos.utils.mixins import LoggerMixin


class MonitorState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class MonitorReport(BaseModel):
    """What one monitor tick did."""

    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    skipped: str | None = None
    suggestions: list[str] = Field(default_factory=list)
    applied: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    burnout_risk: float | None = None
    notified: bool = False
    errors: dict[str, str] = Field(default_factory=dict)


class ContinuousMonitor(LoggerMixin):
    """Owns all recurring background optimization behavior.

    Every tick re-derives state from the calendar, so two ticks over an
    unchanged calendar produce the same suggestions and never re-apply.
    """

    def __init__(
        self,
        source: EventSource,
        store: SuggestionStore,
        profile: ProfileStore,
        engine: ApplicationEngine,
        gate: PolicyGate,
        thresholds: DetectorThresholds,
        notifier: Notifier,
        flights: FlightStatusCollaborator | None = None,
        traffic: TrafficCollaborator | None = None,
        *,
        weather: WeatherCollaborator | None = None,
        weather_max_locations: int = 5,
        interval_seconds: float = 1800.0,
        confidence_bar: float = 0.8,
        horizon_days: int = 7,
        detector_timeout: float = 5.0,
        collaborator_timeout: float = 10.0,
    ) -> None:
        self.source = source
        self.store = store
        self.profile = profile
        self.engine = engine
        self.gate = gate
        self.thresholds = thresholds
        self.notifier = notifier
        self.flights = flights
        self.traffic = traffic
        self.weather = weather
        self.weather_max_locations = weather_max_locations
        self.interval_seconds = interval_seconds
        self.confidence_bar = confidence_bar
        self.horizon_days = horizon_days
        self.detector_timeout = detector_timeout
        self.collaborator_timeout = collaborator_timeout

        self.state = MonitorState.IDLE
        self.last_report: MonitorReport | None = None
        self._last_burnout_alert: date | None = None
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            self.logger.warning("Monitor already started")
            return
        self.logger.info("Starting continuous monitor", interval=self.interval_seconds)
        self._stop_event.clear()
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        self._stop_event.set()
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self.logger.info("Continuous monitor stopped")

    async def _loop(self) -> None:
        while not self._stop_event.is_set():
            await self.run_once()
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self.interval_seconds
                )
            except TimeoutError:
                continue

    async def run_once(self, *, now: datetime | None = None) -> MonitorReport:
        """One tick; a no-op while a previous tick is still running. Never raises."""
        if self.state == MonitorState.RUNNING:
            self.logger.debug("Monitor tick skipped, previous run in progress")
            return MonitorReport(skipped="in-progress")

        self.state = MonitorState.RUNNING
        try:
            report = await self._run(now or datetime.now(UTC))
        except Exception as e:
            self.logger.error("Monitor run failed", error=str(e), exc_info=True)
            report = MonitorReport(skipped="error", errors={"monitor": str(e)})
        finally:
            self.state = MonitorState.IDLE

        self.last_report = report
        return report

    async def _run(self, now: datetime) -> MonitorReport:
        report = MonitorReport(started_at=now)
        preferences = await self.source.load_preferences()
        if preferences.automation_level == AutomationLevel.MINIMAL:
            report.skipped = "minimal-automation"
            return report

        horizon_end = now + timedelta(days=self.horizon_days)
        try:
            events = await self.source.load_events(now, horizon_end)
        except DataUnavailable as e:
            report.skipped = "calendar-unavailable"
            report.errors["calendar"] = str(e)
            return report

        watchlist = await self.profile.load_watchlist()
        signals = await collect_travel_signals(
            watchlist,
            self.flights,
            self.traffic,
            timeout=self.collaborator_timeout,
            weather=self.weather,
            locations=weather_locations(
                events,
                now,
                lookahead_minutes=self.thresholds.weather_lookahead_minutes,
                limit=self.weather_max_locations,
            ),
        )
        batches, failures = await run_detectors(
            {"travel": detect_travel_disruption},
            events,
            preferences,
            None,
            timeout=self.detector_timeout,
            thresholds=self.thresholds,
            signal=signals,
        )
        report.errors.update(failures)
        gated = self.gate.apply_gate(merge(*batches), preferences)
        report.suggestions = [s.id for s in gated]

        eligible = [
            s for s in gated if s.auto_approve and s.confidence > self.confidence_bar
        ]
        if eligible:
            results = await self.engine.apply_many(eligible, from_queue=False)
            report.applied = [
                r.suggestion_id for r in results if r.status == ApplyStatus.APPLIED
            ]
            report.failed = [
                r.suggestion_id for r in results if r.status == ApplyStatus.FAILED
            ]
            if report.applied:
                await self.store.record_generated(len(report.applied))
                if preferences.notifications.travel_alerts:
                    await self._notify(
                        "Calendar adjusted for travel",
                        f"{len(report.applied)} event(s) were adjusted automatically.",
                        suggestion_ids=report.applied,
                    )

        if preferences.automation_level == AutomationLevel.AGGRESSIVE:
            workload = compute_workload(events, preferences, until=horizon_end)
            report.burnout_risk = workload.burnout_risk
            report.notified = await self._check_burnout(
                events, preferences, workload, report, now
            )

        self.logger.info(
            "Monitor run completed",
            suggestions=len(report.suggestions),
            applied=len(report.applied),
            failed=len(report.failed),
            notified=report.notified,
        )
        return report

    async def _check_burnout(
        self,
        events: list[CalendarEvent],
        preferences: UserPreferences,
        workload: WorkloadAnalysis,
        report: MonitorReport,
        now: datetime,
    ) -> bool:
        batches, failures = await run_detectors(
            {"burnout": detect_burnout_risk},
            events,
            preferences,
            workload,
            timeout=self.detector_timeout,
            thresholds=self.thresholds,
            not_before=now,
        )
        report.errors.update(failures)
        critical = [
            s
            for batch in batches
            for s in batch
            if (s.burnout_risk or 0) >= self.thresholds.burnout_critical_threshold
        ]
        if not critical or not preferences.notifications.burnout_warnings:
            return False
        if self._last_burnout_alert == now.date():
            return False

        sent = await self._notify(
            "Burnout risk is critical",
            f"Your schedule scores {workload.burnout_risk:.1f}/10. "
            f"{critical[0].reason}. Consider protecting a break today.",
            burnout_risk=workload.burnout_risk,
        )
        if sent:
            self._last_burnout_alert = now.date()
        return sent

    async def _notify(self, title: str, message: str, **context: object) -> bool:
        try:
            await self.notifier.notify(title, message, **context)
        except Exception as e:
            self.logger.warning("Notification failed", title=title, error=str(e))
            return False
        return True

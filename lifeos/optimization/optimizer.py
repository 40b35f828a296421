"""Calendar optimizer: the interactive, full optimization flow."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from lifeos.ai.advice import (
    BreakAdvice,
    ConsolidationAdvice,
    FallbackAdvice,
    FocusAdvice,
)
from lifeos.integrations.base.protocols import (
    FlightStatusCollaborator,
    TrafficCollaborator,
    WeatherCollaborator,
)
from lifeos.optimization.detectors import DETECTORS, DetectorThresholds
from lifeos.optimization.engine import ApplicationEngine
from lifeos.optimization.errors import DataUnavailable
from lifeos.optimization.models import (
    ApplyResult,
    ApplyStatus,
    CalendarEvent,
    CommuteRoute,
    HealthSignal,
    OptimizationRun,
    OptimizationStats,
    OptimizationSuggestion,
    TravelWatchlist,
    UserPreferences,
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
from lifeos.optimization.summary import SummaryGenerator
from lifeos.optimization.workload import compute_workload
from lifeos.utils.mixins import LoggerMixin


class CalendarOptimizer(LoggerMixin):
    """Runs the detect, rank, gate and apply pipeline for one user."""

    def __init__(
        self,
        source: EventSource,
        store: SuggestionStore,
        profile: ProfileStore,
        engine: ApplicationEngine,
        gate: PolicyGate,
        thresholds: DetectorThresholds,
        summaries: SummaryGenerator,
        flights: FlightStatusCollaborator | None = None,
        traffic: TrafficCollaborator | None = None,
        *,
        weather: WeatherCollaborator | None = None,
        weather_max_locations: int = 5,
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
        self.summaries = summaries
        self.flights = flights
        self.traffic = traffic
        self.weather = weather
        self.weather_max_locations = weather_max_locations
        self.horizon_days = horizon_days
        self.detector_timeout = detector_timeout
        self.collaborator_timeout = collaborator_timeout

    async def run_full_optimization(
        self, *, now: datetime | None = None, health: HealthSignal | None = None
    ) -> OptimizationRun:
        """Detect, rank and gate; auto-apply what the gate allows, queue the rest.

        A calendar outage yields a run with zero suggestions and leaves the
        pending queue untouched.
        """
        now = now or datetime.now(UTC)
        preferences = await self.source.load_preferences()

        horizon_end = now + timedelta(days=self.horizon_days)
        try:
            events = await self.source.load_events(now, horizon_end)
        except DataUnavailable as e:
            self.logger.warning("Optimization skipped, no calendar data", error=str(e))
            run = OptimizationRun(detector_failures={"calendar": str(e)})
            return run.model_copy(update={"summary": SummaryGenerator.template(run)})

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
        workload = compute_workload(events, preferences, health, until=horizon_end)

        batches, failures = await run_detectors(
            DETECTORS,
            events,
            preferences,
            workload,
            timeout=self.detector_timeout,
            thresholds=self.thresholds,
            extra_kwargs={
                "energy": {"not_before": now},
                "burnout": {"not_before": now},
                "travel": {"signal": signals},
            },
        )
        gated = self.gate.apply_gate(merge(*batches), preferences)

        auto = [s for s in gated if s.auto_approve]
        results = await self.engine.apply_many(auto, from_queue=False)
        applied = [r.suggestion_id for r in results if r.status == ApplyStatus.APPLIED]
        failed = [r.suggestion_id for r in results if r.status == ApplyStatus.FAILED]

        # failed auto-applications stay pending for the user
        to_queue = [s for s in gated if not s.auto_approve or s.id in failed]
        queued = await self.store.replace_pending(to_queue)
        await self.store.record_generated(len(gated), at=now)

        run = OptimizationRun(
            suggestions=gated,
            auto_applied=applied,
            queued=queued,
            failed=failed,
            detector_failures=failures,
            workload=workload,
        )
        summary = await self.summaries.summarize(run)
        self.logger.info(
            "Optimization run completed",
            suggestions=len(gated),
            auto_applied=len(applied),
            queued=len(queued),
            failed=len(failed),
            detector_failures=list(failures),
        )
        return run.model_copy(update={"summary": summary})

    async def get_pending(self) -> list[OptimizationSuggestion]:
        return await self.store.pending()

    async def apply_suggestion(self, suggestion_id: str) -> ApplyResult:
        suggestion = await self.store.get_pending(suggestion_id)
        if suggestion is None:
            self.logger.info("Apply ignored, not pending", suggestion_id=suggestion_id)
            return ApplyResult(
                suggestion_id=suggestion_id, status=ApplyStatus.ALREADY_RESOLVED
            )
        return await self.engine.apply(suggestion)

    async def reject_suggestion(self, suggestion_id: str) -> bool:
        return await self.engine.reject(suggestion_id)

    async def get_stats(self) -> OptimizationStats:
        return await self.store.stats()

    async def get_preferences(self) -> UserPreferences:
        return await self.source.load_preferences()

    async def update_preferences(self, **changes: Any) -> UserPreferences:
        """Validate and persist a new preferences version."""
        current = await self.source.load_preferences()
        updated = UserPreferences.model_validate({**current.model_dump(), **changes})
        await self.profile.save_preferences(updated)
        return updated

    async def track_flight(self, flight_number: str) -> TravelWatchlist:
        watchlist = await self.profile.load_watchlist()
        number = flight_number.strip().upper()
        if number not in watchlist.flight_numbers:
            watchlist.flight_numbers.append(number)
            await self.profile.save_watchlist(watchlist)
            self.logger.info("Tracking flight", flight=number)
        return watchlist

    async def untrack_flight(self, flight_number: str) -> TravelWatchlist:
        watchlist = await self.profile.load_watchlist()
        number = flight_number.strip().upper()
        if number in watchlist.flight_numbers:
            watchlist.flight_numbers.remove(number)
            await self.profile.save_watchlist(watchlist)
        return watchlist

    async def save_commute_route(self, route: CommuteRoute) -> TravelWatchlist:
        watchlist = await self.profile.load_watchlist()
        watchlist.commute_routes = [
            r for r in watchlist.commute_routes if r.route_id != route.route_id
        ]
        watchlist.commute_routes.append(route)
        await self.profile.save_watchlist(watchlist)
        self.logger.info("Commute route saved", route=route.route_id)
        return watchlist

    async def get_advice(
        self, events: list[CalendarEvent] | None = None
    ) -> BreakAdvice | FocusAdvice | ConsolidationAdvice | FallbackAdvice:
        """Structured coaching advice for the current workload."""
        preferences = await self.source.load_preferences()
        now = datetime.now(UTC)
        horizon_end = now + timedelta(days=self.horizon_days)
        if events is None:
            try:
                events = await self.source.load_events(now, horizon_end)
            except DataUnavailable:
                events = []
        workload = compute_workload(events, preferences, until=horizon_end)
        return await self.summaries.advise(workload)

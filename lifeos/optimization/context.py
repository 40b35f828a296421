"""Service context: builds every optimizer component once and owns their lifecycle."""

from __future__ import annotations

from typing import Any

from lifeos.config import Settings, get_settings
from lifeos.integrations.base.protocols import (
    CalendarCollaborator,
    FlightStatusCollaborator,
    KeyValueStore,
    Notifier,
    TextGenerator,
    TrafficCollaborator,
    WeatherCollaborator,
)
from lifeos.integrations.base.registry import IntegrationRegistry, integration_registry
from lifeos.optimization.engine import ApplicationEngine
from lifeos.optimization.monitor import ContinuousMonitor
from lifeos.optimization.optimizer import CalendarOptimizer
from lifeos.optimization.policy import PolicyGate
from lifeos.optimization.source import EventSource
from lifeos.optimization.store import ProfileStore, SuggestionStore
from lifeos.optimization.summary import SummaryGenerator
from lifeos.utils.mixins import LoggerMixin


def _google_calendar(settings: Settings) -> CalendarCollaborator:
    from lifeos.integrations.google_calendar import GoogleCalendarService

    if settings.google_calendar_access_token is None:
        raise ValueError("GOOGLE_CALENDAR_ACCESS_TOKEN is not set")
    return GoogleCalendarService(
        access_token=settings.google_calendar_access_token.get_secret_value(),
        base_url=settings.google_calendar_base_url,
        timeout_seconds=settings.collaborator_timeout_seconds,
    )


def _flight_status(settings: Settings) -> FlightStatusCollaborator | None:
    from lifeos.integrations.travel import FlightStatusClient

    if settings.flight_api_key is None:
        return None
    return FlightStatusClient(
        api_key=settings.flight_api_key.get_secret_value(),
        base_url=settings.flight_api_base_url,
        timeout_seconds=settings.collaborator_timeout_seconds,
    )


def _traffic(settings: Settings) -> TrafficCollaborator | None:
    from lifeos.integrations.travel import TrafficClient

    if settings.maps_api_key is None:
        return None
    return TrafficClient(
        api_key=settings.maps_api_key.get_secret_value(),
        base_url=settings.maps_api_base_url,
        timeout_seconds=settings.collaborator_timeout_seconds,
    )


def _weather(settings: Settings) -> WeatherCollaborator | None:
    from lifeos.integrations.travel import WeatherClient

    if settings.weather_api_key is None:
        return None
    return WeatherClient(
        api_key=settings.weather_api_key.get_secret_value(),
        base_url=settings.weather_api_base_url,
        timeout_seconds=settings.collaborator_timeout_seconds,
    )


def _gemini(settings: Settings) -> TextGenerator | None:
    from lifeos.ai import GeminiTextGenerator

    if settings.gemini_api_key is None:
        return None
    return GeminiTextGenerator(
        api_key=settings.gemini_api_key.get_secret_value(),
        model_name=settings.model_name,
        temperature=settings.ai_temperature,
    )


def _mock_calendar(settings: Settings) -> CalendarCollaborator:
    from datetime import UTC, datetime

    from lifeos.integrations.mock import MockCalendar, sample_events

    return MockCalendar(sample_events(datetime.now(UTC)))


def _json_store(settings: Settings) -> KeyValueStore:
    from lifeos.storage import JsonFileKeyValueStore

    return JsonFileKeyValueStore(settings.data_dir)


def _memory_store(settings: Settings) -> KeyValueStore:
    from lifeos.storage import InMemoryKeyValueStore

    return InMemoryKeyValueStore()


def register_default_integrations(registry: IntegrationRegistry) -> None:
    """Register the built-in collaborator factories; existing names are kept."""
    from lifeos.integrations.mock import (
        MockFlightStatus,
        MockTextGenerator,
        MockTraffic,
        MockWeather,
    )
    from lifeos.integrations.notifier import LoggingNotifier

    defaults = {
        "calendar:google": _google_calendar,
        "calendar:mock": _mock_calendar,
        "flights:aviationstack": _flight_status,
        "flights:mock": lambda settings: MockFlightStatus(),
        "traffic:google": _traffic,
        "traffic:mock": lambda settings: MockTraffic(),
        "weather:openweather": _weather,
        "weather:mock": lambda settings: MockWeather(),
        "text:gemini": _gemini,
        "text:mock": lambda settings: MockTextGenerator(),
        "notifier:log": lambda settings: LoggingNotifier(),
        "store:json": _json_store,
        "store:memory": _memory_store,
    }
    for name, factory in defaults.items():
        if registry.get(name) is None:
            registry.register(name, factory)


class OptimizationContext(LoggerMixin):
    """Explicit replacement for module-level service singletons.

    Construct once at process start and pass it around. Nothing starts in the
    constructor; the background monitor runs between ``start()`` and ``stop()``.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        kv: KeyValueStore | None = None,
        calendar: CalendarCollaborator | None = None,
        flights: FlightStatusCollaborator | None = None,
        traffic: TrafficCollaborator | None = None,
        weather: WeatherCollaborator | None = None,
        text_generator: TextGenerator | None = None,
        notifier: Notifier | None = None,
        registry: IntegrationRegistry | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.registry = registry or integration_registry
        register_default_integrations(self.registry)

        mock = self.settings.is_mock_mode
        self.kv = kv or self._create("store:memory" if mock else "store:json")
        self.calendar = calendar or self._create(
            "calendar:mock" if mock else "calendar:google"
        )
        self.flights = flights or self._create(
            "flights:mock" if mock else "flights:aviationstack"
        )
        self.traffic = traffic or self._create("traffic:mock" if mock else "traffic:google")
        self.weather = weather or self._create(
            "weather:mock" if mock else "weather:openweather"
        )
        self.text_generator = text_generator or self._create(
            "text:mock" if mock else "text:gemini"
        )
        self.notifier = notifier or self._create("notifier:log")

        s = self.settings
        self.thresholds = s.detector_thresholds()
        self.gate = PolicyGate(s.gate_thresholds())
        self.store = SuggestionStore(self.kv, s.user_id)
        self.profile = ProfileStore(self.kv, s.user_id)
        self.source = EventSource(
            self.calendar,
            self.profile,
            s.google_calendar_id,
            timeout_seconds=s.collaborator_timeout_seconds,
        )
        self.engine = ApplicationEngine(
            self.calendar,
            self.store,
            s.google_calendar_id,
            timeout_seconds=s.collaborator_timeout_seconds,
        )
        self.summaries = SummaryGenerator(self.text_generator, s.summary_max_length)
        self.optimizer = CalendarOptimizer(
            self.source,
            self.store,
            self.profile,
            self.engine,
            self.gate,
            self.thresholds,
            self.summaries,
            self.flights,
            self.traffic,
            weather=self.weather,
            weather_max_locations=s.weather_max_locations,
            horizon_days=s.optimization_horizon_days,
            detector_timeout=s.detector_timeout_seconds,
            collaborator_timeout=s.collaborator_timeout_seconds,
        )
        self.monitor = ContinuousMonitor(
            self.source,
            self.store,
            self.profile,
            self.engine,
            self.gate,
            self.thresholds,
            self.notifier,
            self.flights,
            self.traffic,
            weather=self.weather,
            weather_max_locations=s.weather_max_locations,
            interval_seconds=s.monitor_interval_seconds,
            confidence_bar=s.monitor_confidence_bar,
            horizon_days=s.optimization_horizon_days,
            detector_timeout=s.detector_timeout_seconds,
            collaborator_timeout=s.collaborator_timeout_seconds,
        )
        self.logger.info(
            "Optimization context created",
            user_id=s.user_id,
            mock_mode=mock,
            travel_enabled=any(
                c is not None for c in (self.flights, self.traffic, self.weather)
            ),
            ai_enabled=self.text_generator is not None,
        )

    def _create(self, name: str) -> Any:
        return self.registry.create(name, self.settings)

    async def start(self) -> None:
        await self.monitor.start()

    async def stop(self) -> None:
        await self.monitor.stop()
        for collaborator in (self.calendar, self.flights, self.traffic, self.weather):
            close = getattr(collaborator, "close", None)
            if close is not None:
                await close()
        self.logger.info("Optimization context stopped")

    async def __aenter__(self) -> OptimizationContext:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

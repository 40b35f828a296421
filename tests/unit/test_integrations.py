"""Tests for collaborator adapters, the boundary helpers and context wiring"""

import asyncio
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from lifeos.integrations.base.boundary import (
    NonRetryableAPIError,
    RetryableAPIError,
    bounded,
    raise_for_status,
)
from lifeos.integrations.base.registry import IntegrationRegistry
from lifeos.integrations.google_calendar import GoogleCalendarService
from lifeos.integrations.mock import (
    MockCalendar,
    MockFlightStatus,
    MockTraffic,
    MockWeather,
)
from lifeos.integrations.notifier import LoggingNotifier
from lifeos.integrations.travel import FlightStatusClient, TrafficClient, WeatherClient
from lifeos.optimization.context import OptimizationContext, register_default_integrations
from lifeos.optimization.errors import CollaboratorUnavailable
from lifeos.optimization.models import (
    CommuteRoute,
    EventStatus,
    FlightState,
    FlightStatus,
    TravelWatchlist,
    WeatherImpact,
)
from lifeos.optimization.runner import collect_travel_signals, weather_locations
from lifeos.storage import InMemoryKeyValueStore

ROUTE = CommuteRoute(
    route_id="home-office", origin="Home", destination="Office", normal_duration_minutes=20
)


class TestBoundary:
    @pytest.mark.asyncio
    async def test_timeout_maps_to_unavailable(self) -> None:
        with pytest.raises(CollaboratorUnavailable, match="timed out"):
            await bounded(
                asyncio.sleep(1), timeout=0.01, collaborator="calendar", operation="list"
            )

    @pytest.mark.asyncio
    async def test_errors_map_to_unavailable(self) -> None:
        async def broken() -> None:
            raise KeyError("missing")

        with pytest.raises(CollaboratorUnavailable) as exc_info:
            await bounded(broken(), timeout=1, collaborator="calendar", operation="update")
        assert exc_info.value.collaborator == "calendar"
        assert exc_info.value.operation == "update"

    @pytest.mark.asyncio
    async def test_success_passes_through(self) -> None:
        async def ok() -> int:
            return 42

        assert await bounded(ok(), timeout=1, collaborator="c", operation="o") == 42

    def test_raise_for_status(self) -> None:
        raise_for_status(200, "u")
        with pytest.raises(RetryableAPIError):
            raise_for_status(503, "u")
        with pytest.raises(RetryableAPIError):
            raise_for_status(429, "u")
        with pytest.raises(NonRetryableAPIError):
            raise_for_status(404, "u")


class TestGoogleCalendarService:
    @pytest.fixture
    def service(self) -> GoogleCalendarService:
        return GoogleCalendarService(access_token="token")

    def test_build_event(self, service) -> None:
        event = service.build_event(
            {
                "id": "evt-1",
                "summary": "Planning",
                "location": "Office",
                "start": {"dateTime": "2030-03-04T09:00:00Z"},
                "end": {"dateTime": "2030-03-04T10:00:00+00:00"},
                "status": "tentative",
                "attendees": [
                    {"email": "me@example.com", "self": True},
                    {"email": "alex@example.com"},
                ],
                "extendedProperties": {"private": {"lifeos_block": "add-buffer"}},
            }
        )
        assert event is not None
        assert event.start == datetime(2030, 3, 4, 9, tzinfo=UTC)
        assert event.status == EventStatus.TENTATIVE
        assert event.attendees == ("alex@example.com",)
        assert event.is_generated_block

    def test_all_day_and_invalid_events_are_skipped(self, service) -> None:
        assert (
            service.build_event(
                {"id": "holiday", "start": {"date": "2030-03-04"}, "end": {"date": "2030-03-05"}}
            )
            is None
        )
        assert (
            service.build_event(
                {
                    "id": "backwards",
                    "start": {"dateTime": "2030-03-04T10:00:00Z"},
                    "end": {"dateTime": "2030-03-04T09:00:00Z"},
                }
            )
            is None
        )
        assert service.build_event({"summary": "no id"}) is None

    def test_unknown_status_defaults_to_confirmed(self, service) -> None:
        event = service.build_event(
            {
                "id": "evt",
                "start": {"dateTime": "2030-03-04T09:00:00Z"},
                "end": {"dateTime": "2030-03-04T09:30:00Z"},
                "status": "weird",
            }
        )
        assert event.status == EventStatus.CONFIRMED
        assert event.title == "(no title)"


class TestFlightStatusClient:
    @pytest.fixture
    def client(self) -> FlightStatusClient:
        return FlightStatusClient(api_key="key")

    def test_parse_delayed_flight(self, client) -> None:
        flight = client.parse_flight(
            {
                "flight_status": "active",
                "flight": {"iata": "LH400"},
                "departure": {"delay": 40, "delay_reason": "weather"},
                "arrival": {
                    "scheduled": "2030-03-04T10:00:00+00:00",
                    "estimated": "2030-03-04T10:45:00+00:00",
                    "delay": 45,
                    "airport": "JFK",
                },
            },
            "lh400",
        )
        assert flight.flight_number == "LH400"
        assert flight.status == FlightState.DELAYED
        assert flight.arrival_delay_minutes == 45
        assert flight.arrival_airport == "JFK"

    def test_parse_landed_flight(self, client) -> None:
        flight = client.parse_flight(
            {"flight_status": "landed", "arrival": {"scheduled": "2030-03-04T10:00:00Z"}},
            "LH400",
        )
        assert flight.status == FlightState.ARRIVED
        assert flight.arrival_delay_minutes == 0

    def test_missing_arrival(self, client) -> None:
        assert client.parse_flight({"flight_status": "scheduled"}, "LH400") is None

    @pytest.mark.asyncio
    async def test_unknown_flight(self, client, monkeypatch) -> None:
        monkeypatch.setattr(client, "_fetch", AsyncMock(return_value={"data": []}))
        assert await client.get_flight_status("XX1") is None


class TestTrafficClient:
    def test_parse_conditions(self) -> None:
        payload = {
            "status": "OK",
            "routes": [
                {"legs": [{"duration": {"value": 1200}, "duration_in_traffic": {"value": 2400}}]}
            ],
        }
        conditions = TrafficClient(api_key="key").parse_conditions(ROUTE, payload)
        assert conditions.normal_duration_minutes == 20
        assert conditions.live_duration_minutes == 40
        assert conditions.traffic_factor == 2.0

    def test_failed_lookup(self) -> None:
        with pytest.raises(NonRetryableAPIError):
            TrafficClient(api_key="key").parse_conditions(ROUTE, {"status": "ZERO_RESULTS"})


class TestWeatherClient:
    def test_parse_storm(self) -> None:
        payload = {"weather": [{"main": "Thunderstorm", "description": "heavy thunderstorm"}]}
        conditions = WeatherClient(api_key="key").parse_conditions("Berlin Office", payload)
        assert conditions.location == "Berlin Office"
        assert conditions.condition == "Thunderstorm"
        assert conditions.description == "heavy thunderstorm"
        assert conditions.impact == WeatherImpact.HIGH

    @pytest.mark.parametrize(
        ("condition", "impact"),
        [
            ("Snow", WeatherImpact.HIGH),
            ("Rain", WeatherImpact.MEDIUM),
            ("Drizzle", WeatherImpact.MEDIUM),
            ("Clear", WeatherImpact.NONE),
        ],
    )
    def test_impact_by_condition(self, condition, impact) -> None:
        payload = {"weather": [{"main": condition}]}
        assert WeatherClient(api_key="key").parse_conditions("Office", payload).impact == impact

    def test_failed_lookup(self) -> None:
        with pytest.raises(NonRetryableAPIError):
            WeatherClient(api_key="key").parse_conditions("Office", {"cod": "404"})


class TestCollectTravelSignals:
    @pytest.mark.asyncio
    async def test_collects_flights_and_routes(self, at) -> None:
        flights = MockFlightStatus(
            {"LH400": FlightStatus(flight_number="LH400", scheduled_arrival=at(10))}
        )
        watchlist = TravelWatchlist(flight_numbers=["LH400", "XX1"], commute_routes=[ROUTE])

        signals = await collect_travel_signals(
            watchlist, flights, MockTraffic({"home-office": 2.0}), timeout=1
        )

        assert [f.flight_number for f in signals.flights] == ["LH400"]
        assert signals.routes[0].traffic_factor == 2.0

    @pytest.mark.asyncio
    async def test_failures_contribute_nothing(self) -> None:
        flights = MockFlightStatus()
        flights.fail_with = ConnectionError("down")
        traffic = MockTraffic()
        traffic.fail_with = ConnectionError("down")
        watchlist = TravelWatchlist(flight_numbers=["LH400"], commute_routes=[ROUTE])

        signals = await collect_travel_signals(watchlist, flights, traffic, timeout=1)

        assert signals.is_empty

    @pytest.mark.asyncio
    async def test_collects_weather_for_meeting_locations(self, make_event, at) -> None:
        events = [
            make_event("a", (9, 0), (10, 0), location="Office"),
            make_event("b", (11, 0), (12, 0), location="office"),
            make_event("c", (12, 30), (13, 0), location="Airport"),
            make_event("later", (9, 0), (10, 0), day=2, location="Harbor"),
            make_event("remote", (10, 0), (10, 30)),
        ]
        locations = weather_locations(events, at(8), lookahead_minutes=240, limit=5)
        assert locations == ["Office"]

        weather = MockWeather({"Office": "Rain"})
        signals = await collect_travel_signals(
            TravelWatchlist(), None, None, timeout=1, weather=weather, locations=locations
        )

        assert weather.requested == ["Office"]
        assert signals.weather[0].impact == WeatherImpact.MEDIUM
        assert not signals.is_empty

    def test_weather_locations_are_capped(self, make_event, at) -> None:
        events = [
            make_event(f"m{i}", (9, i * 10), (9, i * 10 + 5), location=f"Room {i}")
            for i in range(5)
        ]
        assert weather_locations(events, at(8), lookahead_minutes=240, limit=2) == [
            "Room 0",
            "Room 1",
        ]

    @pytest.mark.asyncio
    async def test_weather_failure_contributes_nothing(self) -> None:
        weather = MockWeather()
        weather.fail_with = ConnectionError("down")
        signals = await collect_travel_signals(
            TravelWatchlist(), None, None, timeout=1, weather=weather, locations=["Office"]
        )
        assert signals.is_empty

    @pytest.mark.asyncio
    async def test_missing_collaborators(self) -> None:
        watchlist = TravelWatchlist(flight_numbers=["LH400"], commute_routes=[ROUTE])
        assert (await collect_travel_signals(watchlist, None, None, timeout=1)).is_empty


class TestOptimizationContext:
    def test_registry_keeps_custom_factories(self) -> None:
        registry = IntegrationRegistry()
        custom = MockCalendar()
        registry.register("calendar:mock", lambda settings: custom)

        register_default_integrations(registry)

        assert registry.create("calendar:mock", None) is custom
        assert registry.get("store:json") is not None

    @pytest.mark.asyncio
    async def test_mock_mode_runs_end_to_end(self, monkeypatch) -> None:
        from lifeos.config import clear_settings_cache

        monkeypatch.setenv("ENABLE_MOCK_MODE", "true")
        clear_settings_cache()

        async with OptimizationContext(registry=IntegrationRegistry()) as context:
            assert isinstance(context.calendar, MockCalendar)
            assert isinstance(context.kv, InMemoryKeyValueStore)
            assert isinstance(context.notifier, LoggingNotifier)
            run = await context.optimizer.run_full_optimization()

        assert run.suggestions
        assert run.summary
        assert not context.monitor.is_running

    def test_real_mode_needs_calendar_token(self) -> None:
        with pytest.raises(ValueError, match="GOOGLE_CALENDAR_ACCESS_TOKEN"):
            OptimizationContext(kv=InMemoryKeyValueStore(), registry=IntegrationRegistry())

    def test_optional_collaborators_are_disabled_without_keys(self, mock_calendar) -> None:
        context = OptimizationContext(
            kv=InMemoryKeyValueStore(), calendar=mock_calendar, registry=IntegrationRegistry()
        )
        assert context.flights is None
        assert context.traffic is None
        assert context.weather is None
        assert context.text_generator is None

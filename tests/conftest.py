"""
Shared fixtures and collection settings.

- Test environment variables are set for every test (autouse)
- The project root is added to ``sys.path`` so ``import lifeos.*`` resolves
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

# A Monday; all fixtures build events relative to it
BASE_DAY = datetime(2030, 3, 4, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Minimal dummy environment; restored by ``monkeypatch`` after each test."""
    from lifeos.config import clear_settings_cache

    env: dict[str, str] = {
        "ENVIRONMENT": "testing",
        "ENABLE_MOCK_MODE": "false",
        "USER_ID": "test-user",
        "DATA_DIR": str(tmp_path / "data"),
        "LOG_DIR": str(tmp_path / "logs"),
        "LOG_FORMAT": "console",
    }
    for k, v in env.items():
        monkeypatch.setenv(k, v)
    for key in (
        "GEMINI_API_KEY",
        "GOOGLE_CALENDAR_ACCESS_TOKEN",
        "FLIGHT_API_KEY",
        "MAPS_API_KEY",
        "WEATHER_API_KEY",
    ):
        monkeypatch.delenv(key, raising=False)

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def at() -> Callable[..., datetime]:
    """``at(hour, minute=0, day=0)`` -> aware UTC timestamp relative to BASE_DAY."""

    def _at(hour: int, minute: int = 0, day: int = 0) -> datetime:
        return BASE_DAY + timedelta(days=day, hours=hour, minutes=minute)

    return _at


@pytest.fixture
def make_event(at: Callable[..., datetime]) -> Callable[..., Any]:
    from lifeos.optimization.models import CalendarEvent

    def _make(
        event_id: str,
        start: tuple[int, int],
        end: tuple[int, int],
        *,
        day: int = 0,
        **kwargs: Any,
    ) -> CalendarEvent:
        return CalendarEvent(
            id=event_id,
            title=kwargs.pop("title", event_id.replace("-", " ").title()),
            start=at(start[0], start[1], day),
            end=at(end[0], end[1], day),
            **kwargs,
        )

    return _make


@pytest.fixture
def preferences_factory() -> Callable[..., Any]:
    from lifeos.optimization.models import UserPreferences

    def _make(**overrides: Any) -> UserPreferences:
        return UserPreferences.model_validate(
            {**UserPreferences.default().model_dump(), **overrides}
        )

    return _make


@pytest.fixture
def thresholds() -> Any:
    from lifeos.optimization.detectors import DetectorThresholds

    return DetectorThresholds()


@pytest.fixture
def memory_store() -> Any:
    from lifeos.storage import InMemoryKeyValueStore

    return InMemoryKeyValueStore()


@pytest.fixture
def mock_calendar() -> Any:
    from lifeos.integrations.mock import MockCalendar

    return MockCalendar()


@pytest.fixture
def flights() -> Any:
    from lifeos.integrations.mock import MockFlightStatus

    return MockFlightStatus()


@pytest.fixture
def weather() -> Any:
    from lifeos.integrations.mock import MockWeather

    return MockWeather()


@pytest.fixture
def notifier() -> Any:
    from lifeos.integrations.notifier import LoggingNotifier

    return LoggingNotifier()


@pytest.fixture
def context(memory_store, mock_calendar, flights, weather, notifier) -> Any:
    """Fully wired optimization context over in-memory collaborators."""
    from lifeos.integrations.base.registry import IntegrationRegistry
    from lifeos.integrations.mock import MockTextGenerator, MockTraffic
    from lifeos.optimization.context import OptimizationContext

    return OptimizationContext(
        kv=memory_store,
        calendar=mock_calendar,
        flights=flights,
        traffic=MockTraffic(),
        weather=weather,
        text_generator=MockTextGenerator(),
        notifier=notifier,
        registry=IntegrationRegistry(),
    )

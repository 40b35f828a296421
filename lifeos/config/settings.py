"""Configuration settings for LifeOS with caching utilities."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from threading import RLock
from typing import TYPE_CHECKING, Any

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from lifeos.optimization.detectors.thresholds import DetectorThresholds
    from lifeos.optimization.policy import GateThresholds


class Settings(BaseSettings):
    """LifeOS calendar optimizer settings"""

    model_config = SettingsConfigDict(
        env_file=[".env.test", ".env"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Identity
    user_id: str = "default"
    google_calendar_id: str = "primary"

    # Collaborator credentials
    google_calendar_access_token: SecretStr | None = None
    flight_api_key: SecretStr | None = None
    maps_api_key: SecretStr | None = None
    weather_api_key: SecretStr | None = None
    gemini_api_key: SecretStr | None = None

    # Collaborator endpoints
    google_calendar_base_url: str = "https://www.googleapis.com/calendar/v3"
    flight_api_base_url: str = "https://api.aviationstack.com/v1"
    maps_api_base_url: str = "https://maps.googleapis.com/maps/api"
    weather_api_base_url: str = "https://api.openweathermap.org/data/2.5"

    # Storage
    data_dir: Path = Path("./data")

    # AI Model Configuration
    model_name: str = "models/gemini-2.5-flash"
    ai_temperature: float = 0.3
    summary_max_length: int = 400

    # Collaborator boundary
    collaborator_timeout_seconds: float = 10.0
    detector_timeout_seconds: float = 5.0

    # Optimization window
    optimization_horizon_days: int = 7

    # Detector thresholds (heuristic defaults, tune freely)
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
    weather_max_locations: int = 5

    # Policy gate
    auto_approve_confidence: float = 0.8

    # Continuous monitor
    monitor_interval_seconds: float = 1800.0
    monitor_confidence_bar: float = 0.8

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_dir: Path = Path("logs")

    # Environment
    environment: str = "personal"
    enable_mock_mode: bool = False

    @property
    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.environment.lower() in ["development", "dev"]

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode"""
        return self.environment.lower() in ["testing", "test"]

    @property
    def is_mock_mode(self) -> bool:
        """Check if mock collaborators should be used"""
        return self.enable_mock_mode or self.is_development

    def detector_thresholds(self) -> DetectorThresholds:
        """Build the immutable threshold set handed to the detectors."""
        from lifeos.optimization.detectors.thresholds import DetectorThresholds

        return DetectorThresholds(
            important_meeting_minutes=self.important_meeting_minutes,
            important_meeting_attendees=self.important_meeting_attendees,
            energy_poor_confidence=self.energy_poor_confidence,
            energy_marginal_confidence=self.energy_marginal_confidence,
            energy_search_days=self.energy_search_days,
            slot_granularity_minutes=self.slot_granularity_minutes,
            buffer_confidence=self.buffer_confidence,
            focus_confidence=self.focus_confidence,
            focus_reschedule_offset_minutes=self.focus_reschedule_offset_minutes,
            focus_search_hours=self.focus_search_hours,
            burnout_threshold=self.burnout_threshold,
            burnout_critical_threshold=self.burnout_critical_threshold,
            break_minutes=self.break_minutes,
            flight_window_minutes=self.flight_window_minutes,
            flight_reschedule_delay_minutes=self.flight_reschedule_delay_minutes,
            flight_remote_delay_minutes=self.flight_remote_delay_minutes,
            traffic_factor_threshold=self.traffic_factor_threshold,
            commute_lookahead_minutes=self.commute_lookahead_minutes,
            weather_lookahead_minutes=self.weather_lookahead_minutes,
            weather_rain_buffer_minutes=self.weather_rain_buffer_minutes,
        )

    def gate_thresholds(self) -> GateThresholds:
        """Build the policy gate thresholds."""
        from lifeos.optimization.policy import GateThresholds

        return GateThresholds(
            auto_approve_confidence=self.auto_approve_confidence,
            burnout_critical_threshold=self.burnout_critical_threshold,
        )


_SETTINGS_LOCK = RLock()
_SETTINGS_CACHE: Settings | None = None


def get_settings(*, refresh: bool = False) -> Settings:
    """Return a cached ``Settings`` instance.

    Parameters
    ----------
    refresh:
        When ``True`` the cached instance is discarded and a new one is created.
    """

    global _SETTINGS_CACHE

    with _SETTINGS_LOCK:
        if refresh or _SETTINGS_CACHE is None:
            _SETTINGS_CACHE = Settings()
        return _SETTINGS_CACHE


def clear_settings_cache() -> None:
    """Clear the cached settings instance."""

    global _SETTINGS_CACHE

    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = None


@contextmanager
def override_settings(**overrides: Any) -> Iterator[Settings]:
    """Temporarily override the cached settings within a context."""

    global _SETTINGS_CACHE

    with _SETTINGS_LOCK:
        previous_settings = _SETTINGS_CACHE

    base_settings = previous_settings or Settings()
    patched_settings = base_settings.model_copy(update=overrides)

    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = patched_settings

    try:
        yield patched_settings
    finally:
        with _SETTINGS_LOCK:
            _SETTINGS_CACHE = previous_settings

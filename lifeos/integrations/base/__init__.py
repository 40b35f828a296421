"""Base utilities for collaborator integrations."""

from lifeos.integrations.base.boundary import (
    NonRetryableAPIError,
    RetryableAPIError,
    bounded,
    collaborator_retry,
)
from lifeos.integrations.base.protocols import (
    CalendarCollaborator,
    FlightStatusCollaborator,
    KeyValueStore,
    Notifier,
    TextGenerator,
    TrafficCollaborator,
    WeatherCollaborator,
)
from lifeos.integrations.base.registry import (
    IntegrationRegistry,
    integration_registry,
)
from lifeos.integrations.base.schemas import EventDraft, EventPatch

__all__ = [
    "CalendarCollaborator",
    "FlightStatusCollaborator",
    "TrafficCollaborator",
    "WeatherCollaborator",
    "TextGenerator",
    "Notifier",
    "KeyValueStore",
    "EventDraft",
    "EventPatch",
    "IntegrationRegistry",
    "integration_registry",
    "RetryableAPIError",
    "NonRetryableAPIError",
    "bounded",
    "collaborator_retry",
]

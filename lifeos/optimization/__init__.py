"""Calendar optimization engine.

Only leaf modules are re-exported here; import the engine, optimizer, monitor
and context from their own modules.
"""

from lifeos.optimization.detectors import DETECTORS, DetectorThresholds, TravelSignals
from lifeos.optimization.errors import (
    CollaboratorUnavailable,
    DataUnavailable,
    InvalidSuggestion,
    OptimizationError,
)
from lifeos.optimization.models import (
    AutomationLevel,
    CalendarEvent,
    OptimizationStats,
    OptimizationSuggestion,
    SuggestionAction,
    SuggestionType,
    UserPreferences,
    WorkloadAnalysis,
)
from lifeos.optimization.policy import GateDecision, GateThresholds, PolicyGate, apply_gate
from lifeos.optimization.ranker import merge, rank

__all__ = [
    "DETECTORS",
    "AutomationLevel",
    "CalendarEvent",
    "CollaboratorUnavailable",
    "DataUnavailable",
    "DetectorThresholds",
    "GateDecision",
    "GateThresholds",
    "InvalidSuggestion",
    "OptimizationError",
    "OptimizationStats",
    "OptimizationSuggestion",
    "PolicyGate",
    "SuggestionAction",
    "SuggestionType",
    "TravelSignals",
    "UserPreferences",
    "WorkloadAnalysis",
    "apply_gate",
    "merge",
    "rank",
]

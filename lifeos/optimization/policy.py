"""Policy gate: which suggestions may be applied without asking the user.

Rules are evaluated in a fixed order and the first matching rule decides:

0. informational suggestions and types listed in ``require_approval_for``
   always need approval; so do travel moves when the user disabled automatic
   rescheduling on delays
1. ``minimal`` automation approves nothing
2. commitment-altering types (reschedule, block-focus-time,
   energy-alignment) need ``aggressive`` automation and high confidence
3. add-buffer and travel-adjustment need high confidence
4. suggest-break needs a critical burnout risk
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from lifeos.optimization.models import (
    AutomationLevel,
    OptimizationSuggestion,
    SuggestionAction,
    SuggestionType,
    UserPreferences,
)

COMMITMENT_ALTERING = frozenset(
    {
        SuggestionType.RESCHEDULE,
        SuggestionType.BLOCK_FOCUS_TIME,
        SuggestionType.ENERGY_ALIGNMENT,
    }
)
OBJECTIVE_CAUSE = frozenset({SuggestionType.ADD_BUFFER, SuggestionType.TRAVEL_ADJUSTMENT})


@dataclass(frozen=True)
class GateThresholds:
    auto_approve_confidence: float = 0.8
    burnout_critical_threshold: float = 8.0


@dataclass(frozen=True)
class GateDecision:
    auto_approve: bool
    rule: str


class PolicyGate:
    """Pure, deterministic auto-approval decisions."""

    def __init__(self, thresholds: GateThresholds | None = None) -> None:
        self.thresholds = thresholds or GateThresholds()

    def gate(
        self, suggestion: OptimizationSuggestion, preferences: UserPreferences
    ) -> GateDecision:
        if suggestion.action == SuggestionAction.NONE:
            return GateDecision(False, "informational")
        if suggestion.type in preferences.require_approval_for:
            return GateDecision(False, "approval-required")
        if (
            suggestion.type == SuggestionType.TRAVEL_ADJUSTMENT
            and suggestion.action == SuggestionAction.MOVE_EVENT
            and not preferences.travel.auto_reschedule_on_delay
        ):
            return GateDecision(False, "travel-reschedule-disabled")

        if preferences.automation_level == AutomationLevel.MINIMAL:
            return GateDecision(False, "minimal-automation")

        confident = suggestion.confidence >= self.thresholds.auto_approve_confidence
        if suggestion.type in COMMITMENT_ALTERING:
            approved = (
                preferences.automation_level == AutomationLevel.AGGRESSIVE and confident
            )
            return GateDecision(approved, "commitment-altering")
        if suggestion.type in OBJECTIVE_CAUSE:
            return GateDecision(confident, "objective-cause")
        if suggestion.type == SuggestionType.SUGGEST_BREAK:
            risk = suggestion.burnout_risk or 0.0
            return GateDecision(
                risk >= self.thresholds.burnout_critical_threshold, "burnout-critical"
            )
        return GateDecision(False, "default")

    def apply_gate(
        self,
        suggestions: Iterable[OptimizationSuggestion],
        preferences: UserPreferences,
    ) -> list[OptimizationSuggestion]:
        """Return copies with ``auto_approve`` set; order is preserved."""
        return [
            s.model_copy(update={"auto_approve": self.gate(s, preferences).auto_approve})
            for s in suggestions
        ]


def apply_gate(
    suggestions: Iterable[OptimizationSuggestion],
    preferences: UserPreferences,
    thresholds: GateThresholds | None = None,
) -> list[OptimizationSuggestion]:
    return PolicyGate(thresholds).apply_gate(suggestions, preferences)

"""Human-readable summaries of optimization runs.

The decision pipeline never depends on text generation: every path falls back
to a locally assembled template.
"""

from __future__ import annotations

from collections import Counter

from lifeos.ai.advice import (
    BreakAdvice,
    ConsolidationAdvice,
    FallbackAdvice,
    FocusAdvice,
    parse_ai_advice,
)
from lifeos.integrations.base.protocols import TextGenerator
from lifeos.optimization.models import OptimizationRun, WorkloadAnalysis
from lifeos.utils.error_handler import safe_with_default
from lifeos.utils.mixins import LoggerMixin

SUMMARY_PROMPT = """You are a calm, practical scheduling assistant. Summarize the
calendar review below in 2-3 short sentences for the user. Mention the most
important change first. Do not invent events.

Review:
---
{details}
---

Summary:"""

ADVICE_PROMPT = """You are a scheduling coach. Based on the workload below, reply
with ONE JSON object and nothing else, using one of these shapes:
{{"kind": "break", "minutes": <int>, "reason": "<text>"}}
{{"kind": "focus", "window": "HH:MM-HH:MM", "reason": "<text>"}}
{{"kind": "consolidation", "event_ids": [], "reason": "<text>"}}

Workload:
---
{details}
---"""


class SummaryGenerator(LoggerMixin):
    """Summaries via the text generator, with a mandatory local fallback."""

    def __init__(self, generator: TextGenerator | None = None, max_length: int = 400):
        self.generator = generator
        self.max_length = max_length

    async def summarize(self, run: OptimizationRun) -> str:
        details = self.describe(run)
        text = await self._generate(SUMMARY_PROMPT.format(details=details))
        if text:
            return text.strip()[: self.max_length]
        return self.template(run)

    async def advise(
        self, workload: WorkloadAnalysis
    ) -> BreakAdvice | FocusAdvice | ConsolidationAdvice | FallbackAdvice:
        details = (
            f"weekly_hours={workload.weekly_hours}, "
            f"meeting_density={workload.meeting_density}, "
            f"burnout_risk={workload.burnout_risk}, "
            f"focus_hours_per_day={workload.focus_hours_per_day}"
        )
        return parse_ai_advice(await self._generate(ADVICE_PROMPT.format(details=details)))

    @safe_with_default("generate optimization text", None)
    async def _generate(self, prompt: str) -> str | None:
        if self.generator is None:
            return None
        return await self.generator.generate(prompt, self.max_length)

    @staticmethod
    def describe(run: OptimizationRun) -> str:
        lines = [
            f"{len(run.suggestions)} suggestions, {len(run.auto_applied)} applied "
            f"automatically, {len(run.queued)} awaiting approval."
        ]
        for suggestion in run.suggestions[:5]:
            lines.append(f"- [{suggestion.type.value}] {suggestion.reason}")
        if run.workload is not None:
            lines.append(f"Burnout risk {run.workload.burnout_risk:.1f}/10.")
        return "\n".join(lines)

    @staticmethod
    def template(run: OptimizationRun) -> str:
        if not run.suggestions:
            return "Your schedule looks good. No changes are needed right now."
        counts = Counter(s.type.value for s in run.suggestions)
        kinds = ", ".join(f"{count} {kind}" for kind, count in counts.most_common())
        parts = [f"Found {len(run.suggestions)} suggestions ({kinds})."]
        if run.auto_applied:
            parts.append(f"{len(run.auto_applied)} were applied automatically.")
        if run.queued:
            parts.append(f"{len(run.queued)} are waiting for your approval.")
        return " ".join(parts)

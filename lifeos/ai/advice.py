"""Tagged parsing of AI-generated scheduling advice.

LLM replies are untrusted JSON. They are validated into one of a closed set of
advice variants, discriminated on ``kind``; anything else becomes
``FallbackAdvice`` so raw dictionaries never leave this module.
"""

from __future__ import annotations

import json
import re
from typing import Annotated, Any, Literal

import structlog
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

logger = structlog.get_logger(__name__)

_JSON_BLOCK = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


class BreakAdvice(BaseModel):
    kind: Literal["break"]
    minutes: int = Field(default=15, gt=0, le=240)
    reason: str = ""


class FocusAdvice(BaseModel):
    kind: Literal["focus"]
    window: str = Field(description="HH:MM-HH:MM window to protect")
    reason: str = ""


class ConsolidationAdvice(BaseModel):
    kind: Literal["consolidation"]
    event_ids: list[str] = Field(default_factory=list)
    reason: str = ""


class FallbackAdvice(BaseModel):
    kind: Literal["fallback"] = "fallback"
    message: str = "No structured advice available."


AIAdvice = Annotated[
    BreakAdvice | FocusAdvice | ConsolidationAdvice,
    Field(discriminator="kind"),
]

_ADVICE_ADAPTER: TypeAdapter[Any] = TypeAdapter(AIAdvice)


def parse_ai_advice(
    raw: str | dict[str, Any] | None,
) -> BreakAdvice | FocusAdvice | ConsolidationAdvice | FallbackAdvice:
    """Validate an LLM reply into a typed advice variant."""
    if raw is None:
        return FallbackAdvice()

    payload: Any = raw
    if isinstance(raw, str):
        text = raw.strip()
        match = _JSON_BLOCK.search(text)
        if match:
            text = match.group(1)
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            logger.debug("AI advice is not JSON", length=len(raw))
            return FallbackAdvice(message=raw.strip()[:200] or FallbackAdvice().message)

    if not isinstance(payload, dict):
        return FallbackAdvice()

    try:
        return _ADVICE_ADAPTER.validate_python(payload)
    except ValidationError as e:
        logger.debug("AI advice failed validation", errors=e.error_count())
        return FallbackAdvice()

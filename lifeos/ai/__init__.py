"""AI text generation and advice parsing."""

from lifeos.ai.advice import (
    BreakAdvice,
    ConsolidationAdvice,
    FallbackAdvice,
    FocusAdvice,
    parse_ai_advice,
)
from lifeos.ai.gemini import GeminiAPIError, GeminiTextGenerator

__all__ = [
    "BreakAdvice",
    "ConsolidationAdvice",
    "FallbackAdvice",
    "FocusAdvice",
    "GeminiAPIError",
    "GeminiTextGenerator",
    "parse_ai_advice",
]

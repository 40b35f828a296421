"""
Google Gemini text generator used for human-readable optimization summaries
"""

from __future__ import annotations

from typing import Any

from lifeos.integrations.base.boundary import (
    NonRetryableAPIError,
    RetryableAPIError,
    collaborator_retry,
)
from lifeos.utils.mixins import LoggerMixin


class GeminiAPIError(NonRetryableAPIError):
    """Gemini API error that retrying will not fix"""


class GeminiTextGenerator(LoggerMixin):
    """Text generator backed by the google-genai SDK"""

    def __init__(
        self,
        api_key: str,
        model_name: str = "models/gemini-2.5-flash",
        temperature: float = 0.3,
    ) -> None:
        if not api_key or api_key == "your_gemini_api_key_here":
            raise ValueError("Invalid GEMINI_API_KEY: appears to be placeholder or empty")

        from google import genai

        self.model_name = model_name
        self.temperature = temperature
        self._client: Any = genai.Client(api_key=api_key)
        self.logger.info("Gemini client initialized", model=model_name)

    async def generate(self, prompt: str, max_length: int) -> str:
        text = await self._call_gemini_api(prompt, max_length)
        if len(text) > max_length:
            text = text[: max_length - 3].rstrip() + "..."
        return text

    @collaborator_retry
    async def _call_gemini_api(self, prompt: str, max_length: int) -> str:
        from google.genai import types

        generation_config = types.GenerateContentConfig(
            temperature=self.temperature,
            # ~4 characters per token
            max_output_tokens=max(64, max_length // 2),
        )

        self.logger.debug("Calling Gemini API", prompt_length=len(prompt))
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=generation_config,
            )
        except Exception as e:
            error_msg = str(e)
            if "429" in error_msg or "rate limit" in error_msg.lower():
                raise RetryableAPIError(error_msg) from e
            raise GeminiAPIError(error_msg) from e

        if not response.text:
            raise GeminiAPIError("Empty response from Gemini API")

        self.logger.debug("Gemini API call successful", response_length=len(response.text))
        return response.text.strip()

"""Notifier that writes user-facing alerts to the structured log."""

from __future__ import annotations

from typing import Any

from lifeos.utils.mixins import LoggerMixin


class LoggingNotifier(LoggerMixin):
    """Deliver notifications by logging them; keeps a short in-memory history."""

    def __init__(self, history_limit: int = 50) -> None:
        self.history_limit = history_limit
        self.sent: list[dict[str, Any]] = []

    async def notify(self, title: str, message: str, **context: Any) -> None:
        self.logger.warning("User notification", title=title, message=message, **context)
        self.sent.append({"title": title, "message": message, **context})
        del self.sent[: -self.history_limit]

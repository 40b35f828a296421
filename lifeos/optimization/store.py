"""Persistence of the pending queue, stats, history and user profile.

All records live in a generic key/value store under user-scoped keys. Every
read-modify-write of the queue, stats and history happens under one
``asyncio.Lock`` so the interactive flow and the background monitor never lose
each other's updates.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from lifeos.integrations.base.protocols import KeyValueStore
from lifeos.optimization.models import (
    OptimizationStats,
    OptimizationSuggestion,
    SuggestionHistory,
    SuggestionType,
    TravelWatchlist,
    UserPreferences,
)
from lifeos.utils.mixins import LoggerMixin

PENDING_KEY = "pending_suggestions"
STATS_KEY = "optimization_stats"
HISTORY_KEY = "suggestion_history"
PREFERENCES_KEY = "preferences"
WATCHLIST_KEY = "travel_watchlist"


def user_key(user_id: str, name: str) -> str:
    return f"{user_id}:{name}"


class SuggestionStore(LoggerMixin):
    """Pending suggestions, outcome stats and the resolved-id ledger."""

    def __init__(self, kv: KeyValueStore, user_id: str, history_limit: int = 500):
        self.kv = kv
        self.user_id = user_id
        self.history_limit = history_limit
        self._lock = asyncio.Lock()

    def _key(self, name: str) -> str:
        return user_key(self.user_id, name)

    async def _read_pending(self) -> dict[str, OptimizationSuggestion]:
        raw = await self.kv.get(self._key(PENDING_KEY)) or []
        pending: dict[str, OptimizationSuggestion] = {}
        for item in raw:
            try:
                suggestion = OptimizationSuggestion.model_validate(item)
            except ValidationError as e:
                self.logger.warning("Dropping unreadable pending suggestion", error=str(e))
                continue
            pending[suggestion.id] = suggestion
        return pending

    async def _write_pending(self, pending: dict[str, OptimizationSuggestion]) -> None:
        await self.kv.set(
            self._key(PENDING_KEY),
            [s.model_dump(mode="json") for s in pending.values()],
        )

    async def _read_stats(self) -> OptimizationStats:
        raw = await self.kv.get(self._key(STATS_KEY))
        return OptimizationStats.model_validate(raw) if raw else OptimizationStats()

    async def _write_stats(self, stats: OptimizationStats) -> None:
        await self.kv.set(self._key(STATS_KEY), stats.model_dump(mode="json"))

    async def _read_history(self) -> SuggestionHistory:
        raw = await self.kv.get(self._key(HISTORY_KEY))
        return SuggestionHistory.model_validate(raw) if raw else SuggestionHistory()

    async def _write_history(self, history: SuggestionHistory) -> None:
        await self.kv.set(self._key(HISTORY_KEY), history.model_dump(mode="json"))

    async def pending(self) -> list[OptimizationSuggestion]:
        """Pending suggestions, highest score first."""
        async with self._lock:
            pending = await self._read_pending()
        return sorted(pending.values(), key=lambda s: s.score, reverse=True)

    async def get_pending(self, suggestion_id: str) -> OptimizationSuggestion | None:
        async with self._lock:
            pending = await self._read_pending()
        return pending.get(suggestion_id)

    async def is_pending(self, suggestion_id: str) -> bool:
        return await self.get_pending(suggestion_id) is not None

    async def replace_pending(
        self, suggestions: Iterable[OptimizationSuggestion]
    ) -> list[str]:
        """Make the queue exactly the unresolved subset of ``suggestions``.

        Suggestions are keyed by their deterministic id, so re-deriving the same
        problems never grows the queue. Previously rejected or applied ids are
        not re-queued, and entries the latest pass no longer produces are dropped.
        """
        async with self._lock:
            history = await self._read_history()
            pending: dict[str, OptimizationSuggestion] = {}
            for suggestion in suggestions:
                if history.is_resolved(suggestion.id):
                    continue
                pending.setdefault(suggestion.id, suggestion)
            await self._write_pending(pending)
        return list(pending)

    async def is_resolved(self, suggestion_id: str) -> bool:
        async with self._lock:
            history = await self._read_history()
        return history.is_resolved(suggestion_id)

    async def mark_applied(self, suggestion: OptimizationSuggestion) -> None:
        """Dequeue, record as applied and update stats in one step."""
        async with self._lock:
            pending = await self._read_pending()
            pending.pop(suggestion.id, None)
            history = await self._read_history()
            history.remember("applied", suggestion.id, self.history_limit)
            stats = await self._read_stats()
            stats.applied_suggestions += 1
            stats.minutes_saved += suggestion.estimated_minutes_saved
            if suggestion.type == SuggestionType.SUGGEST_BREAK:
                stats.burnout_prevented += 1
            if (
                suggestion.type == SuggestionType.BLOCK_FOCUS_TIME
                and suggestion.proposed_start is not None
                and suggestion.proposed_end is not None
            ):
                hours = (
                    suggestion.proposed_end - suggestion.proposed_start
                ).total_seconds() / 3600
                stats.focus_hours_protected += hours
            await self._write_pending(pending)
            await self._write_history(history)
            await self._write_stats(stats)

    async def mark_rejected(self, suggestion_id: str) -> bool:
        """Dequeue and record a rejection; False when it was not pending."""
        async with self._lock:
            pending = await self._read_pending()
            if pending.pop(suggestion_id, None) is None:
                return False
            history = await self._read_history()
            history.remember("rejected", suggestion_id, self.history_limit)
            stats = await self._read_stats()
            stats.rejected_suggestions += 1
            await self._write_pending(pending)
            await self._write_history(history)
            await self._write_stats(stats)
        return True

    async def record_generated(self, count: int, at: datetime | None = None) -> None:
        async with self._lock:
            stats = await self._read_stats()
            stats.total_suggestions += count
            if at is not None:
                stats.last_run_at = at
            await self._write_stats(stats)

    async def stats(self) -> OptimizationStats:
        async with self._lock:
            return await self._read_stats()

    async def history(self) -> SuggestionHistory:
        async with self._lock:
            return await self._read_history()


class ProfileStore(LoggerMixin):
    """User preferences (single current version) and the travel watchlist."""

    def __init__(self, kv: KeyValueStore, user_id: str):
        self.kv = kv
        self.user_id = user_id

    async def get_preferences_record(self) -> Any | None:
        return await self.kv.get(user_key(self.user_id, PREFERENCES_KEY))

    async def save_preferences(self, preferences: UserPreferences) -> None:
        await self.kv.set(
            user_key(self.user_id, PREFERENCES_KEY), preferences.model_dump(mode="json")
        )
        self.logger.info("Preferences saved", user_id=self.user_id)

    async def load_watchlist(self) -> TravelWatchlist:
        raw = await self.kv.get(user_key(self.user_id, WATCHLIST_KEY))
        if not raw:
            return TravelWatchlist()
        try:
            return TravelWatchlist.model_validate(raw)
        except ValidationError as e:
            self.logger.warning("Travel watchlist unreadable, starting empty", error=str(e))
            return TravelWatchlist()

    async def save_watchlist(self, watchlist: TravelWatchlist) -> None:
        await self.kv.set(
            user_key(self.user_id, WATCHLIST_KEY), watchlist.model_dump(mode="json")
        )

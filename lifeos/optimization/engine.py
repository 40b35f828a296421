"""Application engine: turns approved suggestions into calendar mutations."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime

from lifeos.integrations.base.boundary import bounded
from lifeos.integrations.base.protocols import CalendarCollaborator
from lifeos.integrations.base.schemas import EventDraft, EventPatch
from lifeos.optimization.errors import CollaboratorUnavailable, InvalidSuggestion
from lifeos.optimization.models import (
    GENERATED_BLOCK_KEY,
    ApplyResult,
    ApplyStatus,
    OptimizationSuggestion,
    SuggestionAction,
)
from lifeos.optimization.store import SuggestionStore
from lifeos.utils.mixins import LoggerMixin

SUGGESTION_ID_KEY = "lifeos_suggestion"


class ApplicationEngine(LoggerMixin):
    """Applies suggestions, serializing mutations that touch the same event."""

    def __init__(
        self,
        calendar: CalendarCollaborator,
        store: SuggestionStore,
        calendar_id: str,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.calendar = calendar
        self.store = store
        self.calendar_id = calendar_id
        self.timeout_seconds = timeout_seconds
        # lock per key plus the number of tasks holding or waiting on it
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    @asynccontextmanager
    async def _locked(self, key: str) -> AsyncIterator[None]:
        """Serialize work on ``key``; the lock is dropped once nobody uses it."""
        lock, users = self._locks.get(key, (asyncio.Lock(), 0))
        self._locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[key]
            if users == 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    async def apply(
        self, suggestion: OptimizationSuggestion, *, from_queue: bool = True
    ) -> ApplyResult:
        """Apply one suggestion.

        With ``from_queue`` the suggestion must still be pending; a suggestion
        resolved concurrently is reported as ``already_resolved``. Queue and
        stats only change after the calendar mutation succeeded.
        """
        async with self._locked(suggestion.lock_key):
            try:
                await self._ensure_unresolved(suggestion, from_queue=from_queue)
                event_id = await self._mutate(suggestion)
            except InvalidSuggestion:
                self.logger.info(
                    "Suggestion already resolved", suggestion_id=suggestion.id
                )
                return ApplyResult(
                    suggestion_id=suggestion.id, status=ApplyStatus.ALREADY_RESOLVED
                )
            except CollaboratorUnavailable as e:
                self.logger.warning(
                    "Failed to apply suggestion",
                    suggestion_id=suggestion.id,
                    type=suggestion.type.value,
                    error=str(e),
                )
                return ApplyResult(
                    suggestion_id=suggestion.id, status=ApplyStatus.FAILED, error=str(e)
                )
            except ValueError as e:
                self.logger.error(
                    "Suggestion cannot be applied",
                    suggestion_id=suggestion.id,
                    action=suggestion.action.value,
                    error=str(e),
                )
                return ApplyResult(
                    suggestion_id=suggestion.id, status=ApplyStatus.FAILED, error=str(e)
                )

            await self.store.mark_applied(suggestion)

        self.logger.info(
            "Suggestion applied",
            suggestion_id=suggestion.id,
            type=suggestion.type.value,
            event_id=event_id,
        )
        return ApplyResult(
            suggestion_id=suggestion.id, status=ApplyStatus.APPLIED, event_id=event_id
        )

    async def apply_many(
        self, suggestions: Sequence[OptimizationSuggestion], *, from_queue: bool = True
    ) -> list[ApplyResult]:
        """Apply in the given order; distinct keys run concurrently."""
        groups: dict[str, list[int]] = {}
        for index, suggestion in enumerate(suggestions):
            groups.setdefault(suggestion.lock_key, []).append(index)

        results: list[ApplyResult | None] = [None] * len(suggestions)

        async def _run(indexes: list[int]) -> None:
            for index in indexes:
                results[index] = await self.apply(
                    suggestions[index], from_queue=from_queue
                )

        await asyncio.gather(*(_run(indexes) for indexes in groups.values()))
        return [r for r in results if r is not None]

    async def reject(self, suggestion_id: str) -> bool:
        """Drop a pending suggestion without touching the calendar."""
        suggestion = await self.store.get_pending(suggestion_id)
        if suggestion is None:
            self.logger.info("Reject ignored, not pending", suggestion_id=suggestion_id)
            return False
        async with self._locked(suggestion.lock_key):
            rejected = await self.store.mark_rejected(suggestion_id)
        if rejected:
            self.logger.info("Suggestion rejected", suggestion_id=suggestion_id)
        return rejected

    async def _ensure_unresolved(
        self, suggestion: OptimizationSuggestion, *, from_queue: bool
    ) -> None:
        if from_queue:
            if not await self.store.is_pending(suggestion.id):
                raise InvalidSuggestion(suggestion.id)
        elif await self.store.is_resolved(suggestion.id):
            raise InvalidSuggestion(suggestion.id)

    async def _mutate(self, suggestion: OptimizationSuggestion) -> str | None:
        markers = {SUGGESTION_ID_KEY: suggestion.id, **suggestion.metadata}

        if suggestion.action == SuggestionAction.MOVE_EVENT:
            if suggestion.event_id is None:
                raise ValueError(f"Suggestion '{suggestion.id}' has no target event")
            start, end = _proposed_window(suggestion)
            updated = await bounded(
                self.calendar.update_event(
                    self.calendar_id,
                    suggestion.event_id,
                    EventPatch(
                        start=start,
                        end=end,
                        metadata=markers,
                    ),
                ),
                timeout=self.timeout_seconds,
                collaborator="calendar",
                operation="update_event",
            )
            return updated.id

        if suggestion.action == SuggestionAction.CREATE_BLOCK:
            start, end = _proposed_window(suggestion)
            created = await bounded(
                self.calendar.create_event(
                    self.calendar_id,
                    EventDraft(
                        title=suggestion.block_title or suggestion.type.value,
                        description=suggestion.reason,
                        start=start,
                        end=end,
                        metadata={GENERATED_BLOCK_KEY: suggestion.type.value, **markers},
                    ),
                ),
                timeout=self.timeout_seconds,
                collaborator="calendar",
                operation="create_event",
            )
            return created.id

        # informational suggestions are acknowledged without a mutation
        return suggestion.event_id


def _proposed_window(suggestion: OptimizationSuggestion) -> tuple[datetime, datetime]:
    if suggestion.proposed_start is None or suggestion.proposed_end is None:
        raise ValueError(f"Suggestion '{suggestion.id}' has no proposed time")
    return suggestion.proposed_start, suggestion.proposed_end

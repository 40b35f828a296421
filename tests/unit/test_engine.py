"""Tests for the application engine"""

import asyncio
from datetime import timedelta

import pytest

from lifeos.optimization.engine import SUGGESTION_ID_KEY, ApplicationEngine
from lifeos.optimization.models import (
    GENERATED_BLOCK_KEY,
    ApplyStatus,
    OptimizationSuggestion,
    SuggestionAction,
    SuggestionType,
)
from lifeos.optimization.store import SuggestionStore


@pytest.fixture
def store(memory_store):
    return SuggestionStore(memory_store, "test-user")


@pytest.fixture
def engine(mock_calendar, store):
    return ApplicationEngine(mock_calendar, store, "primary", timeout_seconds=1)


@pytest.fixture
def move(at):
    return OptimizationSuggestion(
        id="move-1",
        type=SuggestionType.ENERGY_ALIGNMENT,
        action=SuggestionAction.MOVE_EVENT,
        priority=7,
        confidence=0.85,
        reason="low energy",
        event_id="strategy",
        proposed_start=at(10),
        proposed_end=at(11),
    )


@pytest.fixture
def buffer(at):
    return OptimizationSuggestion(
        id="buffer-1",
        type=SuggestionType.ADD_BUFFER,
        action=SuggestionAction.CREATE_BLOCK,
        priority=6,
        confidence=0.8,
        reason="back to back",
        event_id="a",
        proposed_start=at(10),
        proposed_end=at(10, 15),
        block_title="Buffer",
        estimated_minutes_saved=15,
    )


@pytest.mark.asyncio
async def test_apply_move_round_trip(engine, store, mock_calendar, make_event, move, at) -> None:
    mock_calendar.events["strategy"] = make_event("strategy", (13, 0), (14, 0))
    await store.replace_pending([move])

    result = await engine.apply(move)

    assert result.status == ApplyStatus.APPLIED
    assert result.event_id == "strategy"
    updated = mock_calendar.events["strategy"]
    assert updated.start == at(10)
    assert updated.end == at(11)
    assert updated.metadata[SUGGESTION_ID_KEY] == "move-1"
    assert await store.pending() == []
    assert (await store.stats()).applied_suggestions == 1


@pytest.mark.asyncio
async def test_apply_block_creates_marked_event(engine, store, mock_calendar, buffer) -> None:
    await store.replace_pending([buffer])

    result = await engine.apply(buffer)

    assert result.status == ApplyStatus.APPLIED
    created = mock_calendar.events[result.event_id]
    assert created.title == "Buffer"
    assert created.is_generated_block
    assert created.metadata[GENERATED_BLOCK_KEY] == "add-buffer"
    assert (await store.stats()).minutes_saved == 15


@pytest.mark.asyncio
async def test_calendar_failure_keeps_queue(engine, store, mock_calendar, buffer) -> None:
    await store.replace_pending([buffer])
    mock_calendar.fail_with = ConnectionError("calendar down")

    result = await engine.apply(buffer)

    assert result.status == ApplyStatus.FAILED
    assert "calendar down" in result.error
    assert [s.id for s in await store.pending()] == ["buffer-1"]
    assert (await store.stats()).applied_suggestions == 0


@pytest.mark.asyncio
async def test_apply_twice_is_already_resolved(engine, store, mock_calendar, buffer) -> None:
    await store.replace_pending([buffer])

    first = await engine.apply(buffer)
    second = await engine.apply(buffer)

    assert first.status == ApplyStatus.APPLIED
    assert second.status == ApplyStatus.ALREADY_RESOLVED
    assert mock_calendar.calls.count("create_event") == 1


@pytest.mark.asyncio
async def test_concurrent_apply_mutates_once(engine, store, mock_calendar, buffer) -> None:
    await store.replace_pending([buffer])

    results = await asyncio.gather(engine.apply(buffer), engine.apply(buffer))

    statuses = sorted(r.status.value for r in results)
    assert statuses == ["already_resolved", "applied"]
    assert mock_calendar.calls.count("create_event") == 1


@pytest.mark.asyncio
async def test_direct_apply_skips_resolved_ids(engine, store, mock_calendar, buffer) -> None:
    first = await engine.apply(buffer, from_queue=False)
    second = await engine.apply(buffer, from_queue=False)

    assert first.status == ApplyStatus.APPLIED
    assert second.status == ApplyStatus.ALREADY_RESOLVED


@pytest.mark.asyncio
async def test_informational_apply_only_acknowledges(engine, store, mock_calendar) -> None:
    note = OptimizationSuggestion(
        id="note",
        type=SuggestionType.SUGGEST_BREAK,
        action=SuggestionAction.NONE,
        priority=5,
        confidence=0.7,
        reason="redistribute",
    )
    await store.replace_pending([note])

    result = await engine.apply(note)

    assert result.status == ApplyStatus.APPLIED
    assert mock_calendar.calls == []


@pytest.mark.asyncio
async def test_apply_many_keeps_input_order(engine, mock_calendar, make_event, move, buffer) -> None:
    mock_calendar.events["strategy"] = make_event("strategy", (13, 0), (14, 0))
    later = timedelta(hours=2)
    other = buffer.model_copy(
        update={
            "id": "buffer-2",
            "proposed_start": buffer.proposed_start + later,
            "proposed_end": buffer.proposed_end + later,
        }
    )

    results = await engine.apply_many([move, buffer, other], from_queue=False)

    assert [r.suggestion_id for r in results] == ["move-1", "buffer-1", "buffer-2"]
    assert all(r.status == ApplyStatus.APPLIED for r in results)


@pytest.mark.asyncio
async def test_reject(engine, store, mock_calendar, buffer) -> None:
    await store.replace_pending([buffer])

    assert await engine.reject("buffer-1")
    assert not await engine.reject("buffer-1")
    assert not await engine.reject("unknown")
    assert mock_calendar.calls == []
    assert (await engine.apply(buffer)).status == ApplyStatus.ALREADY_RESOLVED


@pytest.mark.asyncio
async def test_locks_are_dropped_once_released(
    engine, store, mock_calendar, make_event, move, buffer
) -> None:
    mock_calendar.events["strategy"] = make_event("strategy", (13, 0), (14, 0))
    await store.replace_pending([move, buffer])

    await asyncio.gather(engine.apply(buffer), engine.apply(buffer), engine.apply(move))
    await engine.reject("buffer-1")

    assert engine._locks == {}


@pytest.mark.asyncio
async def test_suggestion_without_proposed_time_fails_cleanly(
    engine, store, mock_calendar, buffer
) -> None:
    broken = buffer.model_copy(update={"proposed_start": None})

    result = await engine.apply(broken, from_queue=False)

    assert result.status == ApplyStatus.FAILED
    assert "no proposed time" in result.error
    assert mock_calendar.calls == []
    assert not await store.is_resolved("buffer-1")
    assert engine._locks == {}

"""In-process key/value store used in tests and mock mode."""

from __future__ import annotations

import asyncio
import copy
from typing import Any


class InMemoryKeyValueStore:
    """Dictionary-backed store; values are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial or {})
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            value = self._data.get(key)
            return copy.deepcopy(value)

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)

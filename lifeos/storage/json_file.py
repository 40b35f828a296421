"""JSON-file key/value store: one document per key under a data directory."""

from __future__ import annotations

import asyncio
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

import aiofiles
import structlog

logger = structlog.get_logger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileKeyValueStore:
    """Persist values as JSON files, replacing each file atomically on write."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)
        self._lock = asyncio.Lock()

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    async def get(self, key: str) -> Any | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        async with aiofiles.open(path, encoding="utf-8") as f:
            content = await f.read()
        return json.loads(content)

    async def set(self, key: str, value: Any) -> None:
        serialized = json.dumps(value, indent=2, ensure_ascii=False, default=str)
        async with self._lock:
            await self._write_atomic(self.path_for(key), serialized)
        logger.debug("Stored value", key=key)

    async def delete(self, key: str) -> None:
        path = self.path_for(key)
        async with self._lock:
            try:
                await asyncio.to_thread(path.unlink)
            except FileNotFoundError:
                return
        logger.debug("Deleted value", key=key)

    async def _write_atomic(self, path: Path, serialized: str) -> None:
        """Write JSON using an atomic file replace."""

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=path.parent, prefix=f"{path.stem}_", suffix=".json"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                    tmp_file.write(serialized)
                    tmp_file.flush()
                    os.fsync(tmp_file.fileno())
                os.replace(temp_path, path)
            finally:
                if os.path.exists(temp_path):
                    try:
                        os.remove(temp_path)
                    except FileNotFoundError:
                        pass

        await asyncio.to_thread(_write)

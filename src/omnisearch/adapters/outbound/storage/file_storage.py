"""File-backed usage storage — one JSON document per user profile.

Every increment reads, mutates and rewrites the whole document.  Increments
inside one process are serialized; independent processes are not
coordinated (last writer wins).
"""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path

import structlog

from omnisearch.ports.outbound import UsageStorage

logger = structlog.get_logger(__name__)


class FileUsageStorage(UsageStorage):
    """``UsageStorage`` over a local JSON file.

    A missing, unreadable or corrupt file is an empty mapping, never an
    error.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path).expanduser()
        self._lock = asyncio.Lock()
        logger.info("usage_storage_initialized_file", path=str(self._path))

    @property
    def path(self) -> Path:
        return self._path

    async def get(self, key: str) -> int:
        data = await asyncio.to_thread(self._load)
        return data.get(key, 0)

    async def increment(self, key: str) -> int:
        async with self._lock:
            data = await asyncio.to_thread(self._load)
            data[key] = data.get(key, 0) + 1
            await asyncio.to_thread(self._save, data)
            return data[key]

    async def get_all(self) -> dict[str, int]:
        return await asyncio.to_thread(self._load)

    # ── Internals ────────────────────────────────────────────
    def _load(self) -> dict[str, int]:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("usage_file_unreadable", path=str(self._path), error=str(exc))
            return {}

        if not isinstance(raw, dict):
            logger.warning("usage_file_not_a_mapping", path=str(self._path))
            return {}

        return {
            str(k): v
            for k, v in raw.items()
            if isinstance(v, int) and not isinstance(v, bool) and v >= 0
        }

    def _save(self, data: dict[str, int]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        temp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(temp_path, self._path)

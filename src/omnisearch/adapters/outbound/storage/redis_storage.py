"""Redis-backed usage storage.

Keys are namespaced under a fixed prefix and incremented with ``INCR``, so
concurrent writers in any number of processes never lose an update.
"""

from __future__ import annotations

import asyncio

import redis.asyncio as redis
import structlog

from omnisearch.domain.exceptions import StorageError
from omnisearch.ports.outbound import UsageStorage

logger = structlog.get_logger(__name__)

DEFAULT_PREFIX = "omnisearch:"


class RedisUsageStorage(UsageStorage):
    """``UsageStorage`` over Redis string counters.

    The connection is opened lazily on first use, exactly once, and reused
    for the life of the process.  Redis failures surface as
    ``StorageError``; there is no fallback to another backend.
    """

    def __init__(
        self,
        url: str,
        *,
        prefix: str = DEFAULT_PREFIX,
        client: redis.Redis | None = None,
    ) -> None:
        self._url = url
        self._prefix = prefix
        self._client: redis.Redis | None = client
        self._connected = client is not None
        self._connect_lock = asyncio.Lock()

    @property
    def prefix(self) -> str:
        return self._prefix

    async def get(self, key: str) -> int:
        client = await self._ensure_connected()
        try:
            value = await client.get(self._prefix + key)
        except redis.RedisError as exc:
            logger.error("redis_usage_get_error", key=key, error=str(exc))
            raise StorageError(f"Redis GET failed for {key!r}: {exc}") from exc
        return _parse_count(value)

    async def increment(self, key: str) -> int:
        client = await self._ensure_connected()
        try:
            return int(await client.incr(self._prefix + key))
        except redis.RedisError as exc:
            logger.error("redis_usage_incr_error", key=key, error=str(exc))
            raise StorageError(f"Redis INCR failed for {key!r}: {exc}") from exc

    async def get_all(self) -> dict[str, int]:
        client = await self._ensure_connected()
        try:
            keys = [k async for k in client.scan_iter(match=f"{self._prefix}*")]
            if not keys:
                return {}
            values = await client.mget(keys)
        except redis.RedisError as exc:
            logger.error("redis_usage_scan_error", error=str(exc))
            raise StorageError(f"Redis SCAN failed: {exc}") from exc

        return {
            _as_str(k)[len(self._prefix):]: _parse_count(v)
            for k, v in zip(keys, values)
        }

    async def close(self) -> None:
        if self._client is not None and self._connected:
            await self._client.aclose()
            self._connected = False
            self._client = None
            logger.info("redis_usage_connection_closed")

    # ── Connection ───────────────────────────────────────────
    async def _ensure_connected(self) -> redis.Redis:
        if self._connected and self._client is not None:
            return self._client
        async with self._connect_lock:
            if self._connected and self._client is not None:
                return self._client  # another coroutine won the race
            client = self._client or redis.from_url(self._url, decode_responses=True)
            try:
                await client.ping()
            except redis.RedisError as exc:
                logger.error("redis_usage_connect_failed", error=str(exc))
                await client.aclose()
                raise StorageError(f"Cannot connect to Redis: {exc}") from exc
            self._client = client
            self._connected = True
            logger.info("redis_usage_connected")
            return client


def _as_str(value: str | bytes) -> str:
    return value.decode() if isinstance(value, bytes) else value


def _parse_count(value: str | bytes | None) -> int:
    if value is None:
        return 0
    try:
        return max(0, int(value))
    except ValueError as exc:
        raise StorageError(f"Non-integer usage counter value {value!r}") from exc

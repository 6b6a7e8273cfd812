"""Usage storage adapters and backend selection."""

from __future__ import annotations

import structlog

from omnisearch.adapters.outbound.storage.file_storage import FileUsageStorage
from omnisearch.adapters.outbound.storage.redis_storage import RedisUsageStorage
from omnisearch.config import Settings
from omnisearch.ports.outbound import UsageStorage

logger = structlog.get_logger(__name__)


def create_storage(settings: Settings) -> UsageStorage:
    """Pick the backend once: Redis when ``REDIS_URL`` is set, else the JSON file."""
    if settings.uses_redis:
        logger.info("usage_storage_selected", backend="redis")
        return RedisUsageStorage(settings.redis_url, prefix=settings.redis_key_prefix)
    logger.info("usage_storage_selected", backend="file")
    return FileUsageStorage(settings.usage_file_path)


__all__ = ["FileUsageStorage", "RedisUsageStorage", "create_storage"]

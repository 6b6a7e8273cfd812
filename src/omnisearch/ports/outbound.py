"""Outbound ports — interfaces that infrastructure adapters must implement.

The routing engine depends only on these abstractions, never on a concrete
storage driver or provider HTTP client.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from omnisearch.shared.providers.types import SearchResult


# ═══════════════════════════════════════════════════════════════
#  Usage storage port
# ═══════════════════════════════════════════════════════════════
class UsageStorage(ABC):
    """Durable ``key -> non-negative int`` counters."""

    @abstractmethod
    async def get(self, key: str) -> int:
        """Current count for ``key``; 0 when the key has never been written."""

    @abstractmethod
    async def increment(self, key: str) -> int:
        """Add one to ``key`` and return the new value."""

    @abstractmethod
    async def get_all(self) -> dict[str, int]:
        """Every tracked counter. No consistency guarantee against in-flight increments."""

    async def close(self) -> None:  # noqa: B027
        """Release backend resources."""


# ═══════════════════════════════════════════════════════════════
#  Search provider port
# ═══════════════════════════════════════════════════════════════
class SearchProvider(ABC):
    """Uniform search capability implemented by every provider adapter."""

    name: str

    @abstractmethod
    async def search(
        self,
        query: str,
        limit: int | None = None,
        *,
        include_content: bool = False,
    ) -> list[SearchResult]: ...

    async def close(self) -> None:  # noqa: B027
        pass

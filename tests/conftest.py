"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from typing import Mapping

import pytest

from omnisearch.domain.exceptions import ProviderCallError
from omnisearch.ports.outbound import SearchProvider, UsageStorage
from omnisearch.shared.providers.circuit_breaker import CircuitBreaker
from omnisearch.shared.providers.types import QuotaPolicy, ResetType, SearchResult


class InMemoryUsageStorage(UsageStorage):
    """Dict-backed counters for router tests."""

    def __init__(self, initial: Mapping[str, int] | None = None) -> None:
        self.data: dict[str, int] = dict(initial or {})

    async def get(self, key: str) -> int:
        return self.data.get(key, 0)

    async def increment(self, key: str) -> int:
        self.data[key] = self.data.get(key, 0) + 1
        return self.data[key]

    async def get_all(self) -> dict[str, int]:
        return dict(self.data)


class FakeSearchProvider(SearchProvider):
    """Scripted provider: returns canned results, raises, or stalls."""

    def __init__(
        self,
        name: str,
        *,
        fail: bool = False,
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self.fail = fail
        self.delay = delay
        self.error = error
        self.calls: list[dict] = []
        self.closed = False

    async def search(
        self,
        query: str,
        limit: int | None = None,
        *,
        include_content: bool = False,
    ) -> list[SearchResult]:
        self.calls.append({"query": query, "limit": limit, "include_content": include_content})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.fail:
            raise ProviderCallError(self.name, "boom")
        return [
            SearchResult(
                title=f"{self.name} result",
                url=f"https://{self.name}.example/1",
                snippet=query,
                position=1,
                source_provider=self.name,
                content="full page" if include_content else None,
            )
        ]

    async def close(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def storage() -> InMemoryUsageStorage:
    return InMemoryUsageStorage()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def circuit_breaker(clock: FakeClock) -> CircuitBreaker:
    return CircuitBreaker(failure_threshold=3, cooldown_seconds=300, clock=clock)


@pytest.fixture
def abc_limits() -> dict[str, QuotaPolicy]:
    """Three lifetime providers plus a paid-only one."""
    return {
        "A": QuotaPolicy(limit=2, reset_type=ResetType.LIFETIME),
        "B": QuotaPolicy(limit=1, reset_type=ResetType.LIFETIME),
        "C": QuotaPolicy(limit=1, reset_type=ResetType.LIFETIME, cost_per_query=0.001),
        "P": QuotaPolicy(limit=0, reset_type=ResetType.PAID, cost_per_query=0.005),
    }


@pytest.fixture
def make_provider():
    return FakeSearchProvider


@pytest.fixture
def make_storage():
    return InMemoryUsageStorage

"""Usage stats aggregator — read-only budget and health view.

Reads the full counter set once and folds it into per-provider
used / limit / remaining figures, paid-only spend estimates, overage counts
and circuit health.  No snapshot isolation against in-flight increments.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Mapping

from omnisearch.shared.providers.circuit_breaker import CircuitBreaker
from omnisearch.shared.providers.quota import paid_key, quota_key
from omnisearch.shared.providers.types import (
    BudgetStats,
    PaidApiUsage,
    QuotaPolicy,
    QuotaUsage,
    ResetType,
)

if TYPE_CHECKING:
    from omnisearch.ports.outbound import UsageStorage


class UsageStatsAggregator:
    def __init__(
        self,
        storage: UsageStorage,
        limits: Mapping[str, QuotaPolicy],
        circuit_breaker: CircuitBreaker,
    ) -> None:
        self._storage = storage
        self._limits = dict(limits)
        self._circuit = circuit_breaker

    async def get_usage_stats(self, now: datetime | None = None) -> BudgetStats:
        all_usage = await self._storage.get_all()
        stats = BudgetStats()

        for provider, policy in self._limits.items():
            used = all_usage.get(quota_key(provider, policy, now), 0)

            if policy.reset_type == ResetType.PAID:
                stats.paid_apis[provider] = PaidApiUsage(
                    used=used,
                    cost_per_query=policy.cost_per_query,
                    estimated_cost=used * policy.cost_per_query,
                )
                continue

            usage = QuotaUsage(
                used=used,
                limit=policy.limit,
                remaining=max(0, policy.limit - used),
            )
            if policy.reset_type == ResetType.MONTHLY:
                stats.monthly[provider] = usage
            else:
                stats.lifetime[provider] = usage

            stats.paid[provider] = all_usage.get(paid_key(provider), 0)
            stats.health[provider] = self._circuit.health(provider)

        return stats

"""Budget-aware provider routing.

Provides free-tier quota accounting, circuit breaking, priority-stack
routing with paid fallback, and usage reporting for search providers.
"""

from omnisearch.shared.providers.types import (
    BudgetStats,
    HealthStatus,
    ProviderHealth,
    QuotaPolicy,
    ResetType,
    RouteRequest,
    RouteResult,
    SearchResult,
)
from omnisearch.shared.providers.circuit_breaker import CircuitBreaker
from omnisearch.shared.providers.quota import QuotaManager
from omnisearch.shared.providers.stats import UsageStatsAggregator
from omnisearch.shared.providers.router import BudgetRouter

__all__ = [
    "BudgetRouter",
    "BudgetStats",
    "CircuitBreaker",
    "HealthStatus",
    "ProviderHealth",
    "QuotaManager",
    "QuotaPolicy",
    "ResetType",
    "RouteRequest",
    "RouteResult",
    "SearchResult",
    "UsageStatsAggregator",
]

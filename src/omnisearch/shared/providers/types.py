"""Core types for budget-aware search routing."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class ResetType(str, enum.Enum):
    """How a provider's free allowance replenishes."""

    MONTHLY = "monthly"
    LIFETIME = "lifetime"
    PAID = "paid"


class HealthStatus(str, enum.Enum):
    """Circuit-derived health of a routed provider."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    DOWN = "down"


@dataclass(frozen=True)
class QuotaPolicy:
    """Free-tier allowance for a single provider.

    Attributes:
        limit:          Number of free queries in one reset period.
        reset_type:     ``monthly``, ``lifetime`` or ``paid`` (no free tier).
        cost_per_query: USD charged per query once the free tier is gone.
    """

    limit: int
    reset_type: ResetType = ResetType.MONTHLY
    cost_per_query: float = 0.0

    def __post_init__(self) -> None:
        if self.limit <= 0 and self.reset_type != ResetType.PAID:
            raise ValueError(f"limit must be positive, got {self.limit}")
        if self.cost_per_query < 0:
            raise ValueError("cost_per_query must not be negative")


@dataclass(frozen=True)
class SearchResult:
    """A single provider-agnostic search hit."""

    title: str
    url: str
    snippet: str
    position: int
    source_provider: str
    content: str | None = None
    metadata: dict[str, Any] | None = None


@dataclass(frozen=True)
class RouteRequest:
    query: str
    limit: int | None = None
    prefer_google: bool = False
    include_content: bool = False


@dataclass(frozen=True)
class RouteResult:
    results: list[SearchResult]
    provider: str
    used_paid_tier: bool = False


@dataclass
class ProviderHealth:
    """Read-only snapshot of a provider's circuit state."""

    status: HealthStatus = HealthStatus.HEALTHY
    failures: int = 0
    cooldown_until: str | None = None


@dataclass
class QuotaUsage:
    used: int
    limit: int
    remaining: int


@dataclass
class PaidApiUsage:
    used: int
    cost_per_query: float
    estimated_cost: float


@dataclass
class BudgetStats:
    """Structured usage report consumed by the presentation layer."""

    monthly: dict[str, QuotaUsage] = field(default_factory=dict)
    lifetime: dict[str, QuotaUsage] = field(default_factory=dict)
    paid_apis: dict[str, PaidApiUsage] = field(default_factory=dict)
    paid: dict[str, int] = field(default_factory=dict)
    health: dict[str, ProviderHealth] = field(default_factory=dict)

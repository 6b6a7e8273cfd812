"""Quota manager — maps providers to persistent free-tier counters.

Counters live in ``UsageStorage`` under keys derived from the provider's
reset type:

    monthly   →  "brave:2026-02"   (UTC calendar month, rotates by wall clock)
    lifetime  →  "exa:lifetime"
    paid      →  "perplexity:paid" (also the overage key for every provider)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Mapping

import structlog

from omnisearch.shared.providers.types import QuotaPolicy, ResetType

if TYPE_CHECKING:
    from omnisearch.ports.outbound import UsageStorage

logger = structlog.get_logger(__name__)

LIFETIME_SUFFIX = "lifetime"
PAID_SUFFIX = "paid"

DEFAULT_PROVIDER_LIMITS: dict[str, QuotaPolicy] = {
    "brave": QuotaPolicy(limit=2000, reset_type=ResetType.MONTHLY),
    "tavily": QuotaPolicy(limit=1000, reset_type=ResetType.MONTHLY),
    "exa": QuotaPolicy(limit=1000, reset_type=ResetType.MONTHLY),
    "jina_search": QuotaPolicy(limit=10000, reset_type=ResetType.LIFETIME, cost_per_query=0.0005),
    "serper": QuotaPolicy(limit=2500, reset_type=ResetType.LIFETIME, cost_per_query=0.001),
    "youcom": QuotaPolicy(limit=1000, reset_type=ResetType.LIFETIME),
    "perplexity": QuotaPolicy(limit=0, reset_type=ResetType.PAID, cost_per_query=0.005),
    "kagi": QuotaPolicy(limit=0, reset_type=ResetType.PAID, cost_per_query=0.025),
}


def current_month(now: datetime | None = None) -> str:
    """UTC ``YYYY-MM`` for ``now`` (defaults to the current instant)."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m")


def paid_key(provider: str) -> str:
    return f"{provider}:{PAID_SUFFIX}"


def quota_key(provider: str, policy: QuotaPolicy, now: datetime | None = None) -> str:
    """Storage key that holds ``provider``'s usage for the current reset period."""
    if policy.reset_type == ResetType.MONTHLY:
        return f"{provider}:{current_month(now)}"
    if policy.reset_type == ResetType.PAID:
        return paid_key(provider)
    return f"{provider}:{LIFETIME_SUFFIX}"


class QuotaManager:
    """Per-provider free-tier accounting backed by ``UsageStorage``."""

    def __init__(
        self,
        storage: UsageStorage,
        limits: Mapping[str, QuotaPolicy],
    ) -> None:
        self._storage = storage
        self._limits = dict(limits)

    @property
    def limits(self) -> dict[str, QuotaPolicy]:
        return dict(self._limits)

    def policy(self, provider: str) -> QuotaPolicy | None:
        return self._limits.get(provider)

    def key_for(self, provider: str, now: datetime | None = None) -> str:
        return quota_key(provider, self._require(provider), now)

    async def used(self, provider: str) -> int:
        return await self._storage.get(self.key_for(provider))

    async def has_quota(self, provider: str) -> bool:
        """True while the current period's usage is strictly below the limit."""
        policy = self._require(provider)
        used = await self._storage.get(quota_key(provider, policy))
        if used >= policy.limit:
            logger.debug(
                "quota_exhausted",
                provider=provider,
                used=used,
                limit=policy.limit,
                reset_type=policy.reset_type.value,
            )
            return False
        return True

    async def record_usage(self, provider: str, *, paid: bool = False) -> int:
        """Count one successful query; ``paid`` also bumps the overage counter."""
        key = self.key_for(provider)
        count = await self._storage.increment(key)
        # Paid-only policies already count into the overage key
        if paid and key != paid_key(provider):
            overage = await self._storage.increment(paid_key(provider))
            logger.info("quota_paid_usage", provider=provider, overage=overage)
        return count

    async def record_paid_only(self, provider: str) -> int:
        return await self._storage.increment(paid_key(provider))

    # ── Internals ────────────────────────────────────────────
    def _require(self, provider: str) -> QuotaPolicy:
        try:
            return self._limits[provider]
        except KeyError:
            raise KeyError(f"No quota policy configured for provider {provider!r}") from None

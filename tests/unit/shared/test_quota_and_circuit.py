"""Tests for free-tier quota accounting and the per-provider circuit breaker."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from omnisearch.shared.providers.circuit_breaker import CircuitBreaker
from omnisearch.shared.providers.quota import (
    DEFAULT_PROVIDER_LIMITS,
    QuotaManager,
    current_month,
    paid_key,
    quota_key,
)
from omnisearch.shared.providers.types import HealthStatus, QuotaPolicy, ResetType


FEB = datetime(2026, 2, 15, 12, 0, tzinfo=timezone.utc)


# ═══════════════════════════════════════════════════════════════
#  QuotaPolicy
# ═══════════════════════════════════════════════════════════════
class TestQuotaPolicy:
    def test_free_tier_needs_positive_limit(self) -> None:
        with pytest.raises(ValueError):
            QuotaPolicy(limit=0, reset_type=ResetType.MONTHLY)

    def test_paid_only_allows_zero_limit(self) -> None:
        policy = QuotaPolicy(limit=0, reset_type=ResetType.PAID, cost_per_query=0.01)
        assert policy.cost_per_query == 0.01

    def test_negative_cost_rejected(self) -> None:
        with pytest.raises(ValueError):
            QuotaPolicy(limit=10, cost_per_query=-1.0)

    def test_default_table(self) -> None:
        assert DEFAULT_PROVIDER_LIMITS["brave"].limit == 2000
        assert DEFAULT_PROVIDER_LIMITS["brave"].reset_type == ResetType.MONTHLY
        assert DEFAULT_PROVIDER_LIMITS["serper"].reset_type == ResetType.LIFETIME
        assert DEFAULT_PROVIDER_LIMITS["kagi"].reset_type == ResetType.PAID


# ═══════════════════════════════════════════════════════════════
#  Key derivation
# ═══════════════════════════════════════════════════════════════
class TestQuotaKeys:
    def test_current_month_is_utc(self) -> None:
        assert current_month(FEB) == "2026-02"

    def test_current_month_converts_offsets(self) -> None:
        from datetime import timedelta

        # 23:30 on Jan 31 at UTC-2 is already February in UTC
        local = datetime(2026, 1, 31, 23, 30, tzinfo=timezone(timedelta(hours=-2)))
        assert current_month(local) == "2026-02"

    def test_monthly_key(self) -> None:
        policy = QuotaPolicy(limit=5, reset_type=ResetType.MONTHLY)
        assert quota_key("brave", policy, FEB) == "brave:2026-02"

    def test_lifetime_key(self) -> None:
        policy = QuotaPolicy(limit=5, reset_type=ResetType.LIFETIME)
        assert quota_key("exa", policy, FEB) == "exa:lifetime"

    def test_paid_key(self) -> None:
        policy = QuotaPolicy(limit=0, reset_type=ResetType.PAID)
        assert quota_key("kagi", policy) == "kagi:paid"
        assert paid_key("serper") == "serper:paid"


# ═══════════════════════════════════════════════════════════════
#  QuotaManager
# ═══════════════════════════════════════════════════════════════
class TestQuotaManager:
    @pytest.fixture
    def manager(self, storage, abc_limits) -> QuotaManager:
        return QuotaManager(storage, abc_limits)

    @pytest.mark.asyncio
    async def test_has_quota_until_limit_reached(self, manager) -> None:
        assert await manager.has_quota("A") is True
        await manager.record_usage("A")
        assert await manager.has_quota("A") is True
        await manager.record_usage("A")
        assert await manager.has_quota("A") is False

    @pytest.mark.asyncio
    async def test_record_usage_returns_new_count(self, manager, storage) -> None:
        assert await manager.record_usage("B") == 1
        assert storage.data == {"B:lifetime": 1}

    @pytest.mark.asyncio
    async def test_paid_usage_bumps_both_counters(self, manager, storage) -> None:
        await manager.record_usage("C", paid=True)
        assert storage.data == {"C:lifetime": 1, "C:paid": 1}

    @pytest.mark.asyncio
    async def test_paid_usage_on_paid_only_policy_counts_once(self, manager, storage) -> None:
        await manager.record_usage("P", paid=True)
        assert storage.data == {"P:paid": 1}

    @pytest.mark.asyncio
    async def test_record_paid_only(self, manager, storage) -> None:
        await manager.record_paid_only("A")
        assert storage.data == {"A:paid": 1}
        assert await manager.used("A") == 0

    @pytest.mark.asyncio
    async def test_monthly_counter_rotates(self, make_storage) -> None:
        limits = {"brave": QuotaPolicy(limit=1, reset_type=ResetType.MONTHLY)}
        # Last month's exhausted counter does not count against this month
        storage = make_storage({"brave:1999-01": 1})
        manager = QuotaManager(storage, limits)
        assert await manager.has_quota("brave") is True

    @pytest.mark.asyncio
    async def test_unknown_provider_raises(self, manager) -> None:
        with pytest.raises(KeyError):
            await manager.has_quota("nope")

    def test_limits_is_a_copy(self, manager) -> None:
        manager.limits.pop("A")
        assert manager.policy("A") is not None


# ═══════════════════════════════════════════════════════════════
#  CircuitBreaker
# ═══════════════════════════════════════════════════════════════
class TestCircuitBreaker:
    def test_starts_closed(self, circuit_breaker) -> None:
        assert circuit_breaker.is_open("brave") is False
        assert circuit_breaker.health("brave").status == HealthStatus.HEALTHY

    def test_below_threshold_is_degraded(self, circuit_breaker) -> None:
        circuit_breaker.record_failure("brave")
        circuit_breaker.record_failure("brave")
        assert circuit_breaker.is_open("brave") is False
        health = circuit_breaker.health("brave")
        assert health.status == HealthStatus.DEGRADED
        assert health.failures == 2
        assert health.cooldown_until is None

    def test_opens_at_threshold(self, circuit_breaker, clock) -> None:
        for _ in range(3):
            circuit_breaker.record_failure("brave")
        assert circuit_breaker.is_open("brave") is True
        health = circuit_breaker.health("brave")
        assert health.status == HealthStatus.DOWN
        assert health.failures == 3
        expected = datetime.fromtimestamp(clock.now + 300, tz=timezone.utc)
        assert datetime.fromisoformat(health.cooldown_until) == expected

    def test_stays_open_during_cooldown(self, circuit_breaker, clock) -> None:
        for _ in range(3):
            circuit_breaker.record_failure("brave")
        clock.advance(299)
        assert circuit_breaker.is_open("brave") is True

    def test_cooldown_expiry_clears_record(self, circuit_breaker, clock) -> None:
        for _ in range(3):
            circuit_breaker.record_failure("brave")
        clock.advance(300)
        assert circuit_breaker.is_open("brave") is False
        assert circuit_breaker.failure_count("brave") == 0
        assert circuit_breaker.health("brave").status == HealthStatus.HEALTHY

    def test_success_clears_failures(self, circuit_breaker) -> None:
        circuit_breaker.record_failure("brave")
        circuit_breaker.record_failure("brave")
        circuit_breaker.record_success("brave")
        assert circuit_breaker.failure_count("brave") == 0
        # Streak restarts: two more failures do not open it
        circuit_breaker.record_failure("brave")
        circuit_breaker.record_failure("brave")
        assert circuit_breaker.is_open("brave") is False

    def test_reset_closes_open_circuit(self, circuit_breaker) -> None:
        for _ in range(3):
            circuit_breaker.record_failure("brave")
        circuit_breaker.reset("brave")
        assert circuit_breaker.is_open("brave") is False

    def test_providers_are_independent(self, circuit_breaker) -> None:
        for _ in range(3):
            circuit_breaker.record_failure("brave")
        assert circuit_breaker.is_open("tavily") is False

    def test_invalid_threshold(self) -> None:
        with pytest.raises(ValueError):
            CircuitBreaker(failure_threshold=0)

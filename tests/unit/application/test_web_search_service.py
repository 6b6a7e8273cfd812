"""Tests for the web search service and the Markdown budget report."""

from __future__ import annotations

import pytest

from omnisearch.application.budget_report import format_budget_stats, progress_bar
from omnisearch.application.services import WebSearchService, wants_google
from omnisearch.domain.exceptions import ConfigurationError, ValidationError
from omnisearch.shared.providers.router import BudgetRouter
from omnisearch.shared.providers.types import (
    BudgetStats,
    HealthStatus,
    PaidApiUsage,
    ProviderHealth,
    QuotaUsage,
)


@pytest.fixture
def providers(make_provider):
    return {name: make_provider(name) for name in ("brave", "serper", "jina_search")}


@pytest.fixture
def service(providers, storage) -> WebSearchService:
    return WebSearchService(BudgetRouter(providers, storage))


# ═══════════════════════════════════════════════════════════════
#  WebSearchService
# ═══════════════════════════════════════════════════════════════
class TestWebSearchService:
    def test_wants_google(self) -> None:
        assert wants_google("Google Maps API pricing") is True
        assert wants_google("rust borrow checker") is False

    @pytest.mark.asyncio
    async def test_budget_routed_search(self, service) -> None:
        result = await service.search("  fastapi lifespan  ", limit=3)
        assert result.provider == "brave"
        assert result.results[0].snippet == "fastapi lifespan"

    @pytest.mark.asyncio
    async def test_google_query_routes_to_serper(self, service) -> None:
        result = await service.search("google sheets formulas")
        assert result.provider == "serper"

    @pytest.mark.asyncio
    async def test_include_content_uses_jina(self, service) -> None:
        result = await service.search("anything", include_content=True)
        assert result.provider == "jina_search"
        assert result.results[0].content == "full page"

    @pytest.mark.asyncio
    async def test_explicit_provider_records_usage(self, service, storage, providers) -> None:
        result = await service.search("q", provider="serper")

        assert result.provider == "serper"
        assert result.used_paid_tier is False
        assert storage.data == {"serper:lifetime": 1}
        assert providers["brave"].calls == []

    @pytest.mark.asyncio
    async def test_explicit_unknown_provider(self, service) -> None:
        with pytest.raises(ValidationError, match="Invalid provider"):
            await service.search("q", provider="altavista")

    @pytest.mark.asyncio
    async def test_explicit_unconfigured_provider(self, service) -> None:
        with pytest.raises(ConfigurationError):
            await service.search("q", provider="tavily")

    @pytest.mark.asyncio
    async def test_empty_query_rejected(self, service) -> None:
        with pytest.raises(ValidationError):
            await service.search("   ")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, 51])
    async def test_limit_out_of_range(self, service, limit) -> None:
        with pytest.raises(ValidationError):
            await service.search("q", limit=limit)


# ═══════════════════════════════════════════════════════════════
#  Budget report
# ═══════════════════════════════════════════════════════════════
class TestBudgetReport:
    def test_progress_bar(self) -> None:
        assert progress_bar(0) == "[░░░░░░░░░░]"
        assert progress_bar(50) == "[█████░░░░░]"
        assert progress_bar(150) == "[██████████]"

    def test_renders_sections(self) -> None:
        stats = BudgetStats(
            monthly={"brave": QuotaUsage(used=2000, limit=2000, remaining=0)},
            lifetime={"exa": QuotaUsage(used=10, limit=1000, remaining=990)},
            paid_apis={"kagi": PaidApiUsage(used=4, cost_per_query=0.025, estimated_cost=0.1)},
            paid={"brave": 0, "serper": 12},
            health={
                "brave": ProviderHealth(),
                "serper": ProviderHealth(
                    status=HealthStatus.DOWN,
                    failures=3,
                    cooldown_until="2026-02-01T10:05:00+00:00",
                ),
            },
        )

        text = format_budget_stats(stats)

        assert text.startswith("# Search Budget Status")
        assert "- **brave**: 2,000/2,000 (0 remaining) [██████████] **EXHAUSTED**" in text
        assert "- **exa**: 10/1,000 (990 remaining)" in text
        assert "## Paid APIs (no free tier)" in text
        assert "~$0.10 spent" in text
        assert "- **serper**: down (3 failures) (retry after 10:05:00 UTC)" in text
        assert "- **serper**: 12 searches" in text
        assert "- Overage searches: 12" in text

    def test_minimal_report(self) -> None:
        text = format_budget_stats(BudgetStats())
        assert "No monthly providers configured" in text
        assert "Provider Health Issues" not in text
        assert "Paid Usage" not in text

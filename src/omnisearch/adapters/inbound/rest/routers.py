"""Health, Search, Budget, Providers — REST routers."""

from __future__ import annotations

import dataclasses
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from omnisearch import __version__
from omnisearch.application.budget_report import format_budget_stats
from omnisearch.application.dtos import (
    HealthResponse,
    ProviderStatusResponse,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
)
from omnisearch.application.services import WebSearchService
from omnisearch.dependencies import get_budget_router, get_web_search_service
from omnisearch.domain.exceptions import ValidationError
from omnisearch.shared.providers.router import BudgetRouter


# ═══════════════════════════════════════════════════════════════
#  Health
# ═══════════════════════════════════════════════════════════════
health_router = APIRouter(tags=["Health"])


@health_router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request,
    router: BudgetRouter = Depends(get_budget_router),
) -> HealthResponse:
    settings = request.app.state.settings
    registered = router.available_providers()
    return HealthResponse(
        status="ok" if registered else "degraded",
        version=__version__,
        environment=settings.app_env.value,
        services={
            "storage": "redis" if settings.uses_redis else "file",
            "providers": ",".join(registered) or "none",
        },
    )


@health_router.get("/metrics")
async def prometheus_metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


# ═══════════════════════════════════════════════════════════════
#  Search
# ═══════════════════════════════════════════════════════════════
search_router = APIRouter(tags=["Search"])


@search_router.post("/search", response_model=SearchResponse)
async def web_search(
    request: Request,
    body: SearchRequest,
    service: WebSearchService = Depends(get_web_search_service),
) -> SearchResponse:
    """Budget-routed search, or a direct call when ``provider`` is given."""
    if body.provider and body.include_content:
        raise ValidationError("include_content cannot be combined with an explicit provider")

    result = await service.search(
        body.query,
        limit=body.limit,
        provider=body.provider,
        include_content=body.include_content,
    )
    request.state.search_provider = result.provider
    request.state.used_paid_tier = result.used_paid_tier
    return SearchResponse(
        provider=result.provider,
        used_paid_tier=result.used_paid_tier,
        results=[SearchResultItem(**dataclasses.asdict(r)) for r in result.results],
    )


# ═══════════════════════════════════════════════════════════════
#  Budget
# ═══════════════════════════════════════════════════════════════
budget_router = APIRouter(prefix="/budget", tags=["Budget"])


@budget_router.get("")
async def budget_stats(router: BudgetRouter = Depends(get_budget_router)) -> dict[str, Any]:
    """Structured used / limit / remaining and health per provider."""
    stats = await router.get_usage_stats()
    return dataclasses.asdict(stats)


@budget_router.get("/report", response_class=PlainTextResponse)
async def budget_report(router: BudgetRouter = Depends(get_budget_router)) -> PlainTextResponse:
    stats = await router.get_usage_stats()
    return PlainTextResponse(format_budget_stats(stats), media_type="text/markdown")


# ═══════════════════════════════════════════════════════════════
#  Providers
# ═══════════════════════════════════════════════════════════════
providers_router = APIRouter(prefix="/providers", tags=["Provider Health"])


@providers_router.get("", response_model=list[ProviderStatusResponse])
async def list_providers(router: BudgetRouter = Depends(get_budget_router)) -> list[ProviderStatusResponse]:
    registered = set(router.available_providers())
    out: list[ProviderStatusResponse] = []
    for name in router.quota.limits:
        health = router.circuit_breaker.health(name)
        out.append(
            ProviderStatusResponse(
                name=name,
                registered=name in registered,
                status=health.status.value,
                failures=health.failures,
                cooldown_until=health.cooldown_until,
            )
        )
    return out


@providers_router.post("/{name}/reset")
async def reset_provider(name: str, router: BudgetRouter = Depends(get_budget_router)) -> dict[str, str]:
    """Admin: clear the circuit breaker for a provider."""
    if name not in router.quota.limits:
        raise ValidationError(f"Unknown provider: {name}")
    router.reset_provider(name)
    return {"status": "reset", "provider": name}

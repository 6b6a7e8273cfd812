"""Web search application service — the entry point callers use.

Explicit provider requests bypass the router but still go through its
usage-accounting entry point; everything else is budget-routed.
"""

from __future__ import annotations

import structlog

from omnisearch.domain.exceptions import ConfigurationError, ValidationError
from omnisearch.shared.providers.router import BudgetRouter
from omnisearch.shared.providers.types import RouteRequest, RouteResult

logger = structlog.get_logger(__name__)

MAX_LIMIT = 50


def wants_google(query: str) -> bool:
    """Caller policy: route to the Google-preferred stack when the query names Google."""
    return "google" in query.lower()


class WebSearchService:
    def __init__(self, router: BudgetRouter) -> None:
        self._router = router

    @property
    def router(self) -> BudgetRouter:
        return self._router

    async def search(
        self,
        query: str,
        *,
        limit: int | None = None,
        provider: str | None = None,
        include_content: bool = False,
    ) -> RouteResult:
        query = query.strip()
        if not query:
            raise ValidationError("query must not be empty")
        if limit is not None and not 1 <= limit <= MAX_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}")

        if provider:
            return await self._search_explicit(provider, query, limit)

        return await self._router.route(
            RouteRequest(
                query=query,
                limit=limit,
                prefer_google=wants_google(query),
                include_content=include_content,
            )
        )

    async def _search_explicit(self, name: str, query: str, limit: int | None) -> RouteResult:
        if name not in self._router.quota.limits:
            raise ValidationError(
                f"Invalid provider: {name}. Valid options: {', '.join(self._router.available_providers())}"
            )
        adapter = self._router.get_provider(name)
        if adapter is None:
            raise ConfigurationError(f"{name} API key is not configured")

        results = await adapter.search(query, limit)
        await self._router.record_explicit_usage(name)
        logger.info("explicit_provider_search", provider=name, results=len(results))
        return RouteResult(results=results, provider=name, used_paid_tier=False)

"""Dependency injection container — wires adapters to ports.

FastAPI's ``Depends()`` system uses these factories to inject the router
and service singletons into route handlers.  The router is built once per
process: the credential scan and backend selection never re-run.
"""

from __future__ import annotations

from functools import lru_cache

from omnisearch.adapters.outbound.search import build_search_providers
from omnisearch.adapters.outbound.storage import create_storage
from omnisearch.application.services import WebSearchService
from omnisearch.config import Settings, get_settings
from omnisearch.ports.outbound import UsageStorage
from omnisearch.shared.providers.circuit_breaker import CircuitBreaker
from omnisearch.shared.providers.router import BudgetRouter


# ── Settings ─────────────────────────────────────────────────
@lru_cache(maxsize=1)
def get_cached_settings() -> Settings:
    return get_settings()


# ── Singletons ───────────────────────────────────────────────
_storage: UsageStorage | None = None
_router: BudgetRouter | None = None
_web_search: WebSearchService | None = None


def get_storage(settings: Settings | None = None) -> UsageStorage:
    global _storage
    if _storage is None:
        _storage = create_storage(settings or get_cached_settings())
    return _storage


def get_router(settings: Settings | None = None) -> BudgetRouter:
    global _router
    if _router is None:
        s = settings or get_cached_settings()
        _router = BudgetRouter(
            build_search_providers(s),
            get_storage(s),
            limits=s.provider_limits,
            circuit_breaker=CircuitBreaker(
                failure_threshold=s.circuit_breaker_failure_threshold,
                cooldown_seconds=s.circuit_breaker_cooldown_seconds,
            ),
            timeouts=s.provider_timeouts,
            default_timeout=s.provider_timeout_seconds,
        )
    return _router


def get_budget_router() -> BudgetRouter:
    """Parameterless alias of ``get_router`` for ``Depends()``."""
    return get_router()


def get_web_search_service() -> WebSearchService:
    global _web_search
    if _web_search is None:
        _web_search = WebSearchService(get_router())
    return _web_search


async def shutdown() -> None:
    """Close provider clients and the storage connection, then forget singletons."""
    global _storage, _router, _web_search
    if _router is not None:
        for name in _router.available_providers():
            provider = _router.get_provider(name)
            if provider is not None:
                await provider.close()
    if _storage is not None:
        await _storage.close()
    _storage = None
    _router = None
    _web_search = None

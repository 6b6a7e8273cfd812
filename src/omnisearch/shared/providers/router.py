"""Budget router — walks a fixed priority stack, spending free tiers first.

Per call the router picks one of two stacks (default / Google-preferred),
skips providers that are unregistered, circuit-open or out of free quota,
and returns the first successful result.  If the whole stack fails it falls
back to one designated paid provider, invoked without a quota check.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime
from typing import TYPE_CHECKING, Mapping, Sequence

import structlog

from omnisearch.domain.exceptions import (
    ConfigurationError,
    ProviderCallError,
    RoutingExhaustedError,
)
from omnisearch.shared.observability.metrics import (
    PROVIDER_FAILURES_TOTAL,
    PROVIDER_LATENCY,
    SEARCH_ROUTES_TOTAL,
)
from omnisearch.shared.providers.circuit_breaker import CircuitBreaker
from omnisearch.shared.providers.quota import DEFAULT_PROVIDER_LIMITS, QuotaManager
from omnisearch.shared.providers.stats import UsageStatsAggregator
from omnisearch.shared.providers.types import (
    BudgetStats,
    QuotaPolicy,
    ResetType,
    RouteRequest,
    RouteResult,
    SearchResult,
)

if TYPE_CHECKING:
    from omnisearch.ports.outbound import SearchProvider, UsageStorage

logger = structlog.get_logger(__name__)

# Monthly allowances first, then one-time credits
DEFAULT_STACK: tuple[str, ...] = (
    "brave",
    "tavily",
    "exa",
    "jina_search",
    "serper",
    "youcom",
)

# Serper serves Google results, so it leads when Google is requested
GOOGLE_STACK: tuple[str, ...] = (
    "serper",
    "brave",
    "tavily",
    "exa",
    "jina_search",
    "youcom",
)

CONTENT_PROVIDER = "jina_search"
DEFAULT_PAID_FALLBACK = "jina_search"
GOOGLE_PAID_FALLBACK = "serper"
DEFAULT_TIMEOUT_S = 30.0


class BudgetRouter:
    """Routes searches across the provider stack with quota + circuit gating.

    Usage::

        router = BudgetRouter(providers={"brave": BraveSearchAdapter(key)}, storage=storage)
        result = await router.route(RouteRequest(query="python asyncio"))

    ``providers`` is the credential-scanned registry, fixed for the
    router's lifetime.  The router owns the circuit-breaker state and shares
    it with the stats aggregator.
    """

    def __init__(
        self,
        providers: Mapping[str, SearchProvider],
        storage: UsageStorage,
        *,
        limits: Mapping[str, QuotaPolicy] | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        timeouts: Mapping[str, float] | None = None,
        default_timeout: float = DEFAULT_TIMEOUT_S,
        default_stack: Sequence[str] = DEFAULT_STACK,
        google_stack: Sequence[str] = GOOGLE_STACK,
        content_provider: str = CONTENT_PROVIDER,
        paid_fallback: str = DEFAULT_PAID_FALLBACK,
        google_paid_fallback: str = GOOGLE_PAID_FALLBACK,
    ) -> None:
        self._providers = dict(providers)
        self._storage = storage
        self._limits = dict(limits if limits is not None else DEFAULT_PROVIDER_LIMITS)
        self._quota = QuotaManager(storage, self._limits)
        self._circuit = circuit_breaker or CircuitBreaker()
        self._timeouts = dict(timeouts or {})
        self._default_timeout = default_timeout
        self._default_stack = tuple(default_stack)
        self._google_stack = tuple(google_stack)
        self._content_provider = content_provider
        self._paid_fallback = paid_fallback
        self._google_paid_fallback = google_paid_fallback
        self._stats = UsageStatsAggregator(storage, self._limits, self._circuit)

        for name in (*self._default_stack, *self._google_stack, paid_fallback, google_paid_fallback):
            if name not in self._limits:
                raise ValueError(f"Stack provider {name!r} has no quota policy")

        logger.info(
            "budget_router_initialized",
            registered=sorted(self._providers),
            default_stack=list(self._default_stack),
            google_stack=list(self._google_stack),
        )

    # ── Accessors ────────────────────────────────────────────
    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit

    @property
    def quota(self) -> QuotaManager:
        return self._quota

    def available_providers(self) -> list[str]:
        """Registered provider names (credential present at construction)."""
        return list(self._providers)

    def get_provider(self, name: str) -> SearchProvider | None:
        return self._providers.get(name)

    def stack_for(self, prefer_google: bool) -> tuple[str, ...]:
        return self._google_stack if prefer_google else self._default_stack

    # ── Main entry-point ─────────────────────────────────────
    async def route(self, request: RouteRequest) -> RouteResult:
        """Serve ``request`` from exactly one provider.

        Raises:
            ConfigurationError: ``include_content`` was requested but the
                content provider is not registered.
            RoutingExhaustedError: every free candidate and the paid
                fallback were unavailable or failed.
        """
        if request.include_content:
            return await self._route_content(request)

        stack = self.stack_for(request.prefer_google)
        errors: dict[str, str] = {}
        log = logger.bind(prefer_google=request.prefer_google)

        for name in stack:
            provider = self._providers.get(name)
            if provider is None:
                continue

            if self._circuit.is_open(name):
                log.info("provider_skipped_circuit_open", provider=name)
                errors[name] = "circuit_open"
                continue

            if not await self._quota.has_quota(name):
                log.debug("provider_skipped_quota_exhausted", provider=name)
                errors[name] = "quota_exhausted"
                continue

            try:
                results = await self._invoke(name, provider, request)
            except ProviderCallError as exc:
                errors[name] = exc.message
                log.warning("provider_failed_trying_next", provider=name, error=exc.message)
                continue

            await self._quota.record_usage(name)
            self._circuit.record_success(name)
            SEARCH_ROUTES_TOTAL.labels(provider=name, tier="free").inc()
            if errors:
                log.info("provider_failover_success", provider=name, skipped=list(errors))
            return RouteResult(results=results, provider=name, used_paid_tier=False)

        return await self._route_paid(request, errors)

    async def record_explicit_usage(self, provider: str, is_paid_provider: bool = False) -> None:
        """Account for a call made outside the stack (explicit provider choice).

        Paid-only providers, or callers that flag the call as paid, bump
        only the ``:paid`` counter; everyone else bumps their free-tier key.
        Providers with no quota policy are not tracked.
        """
        policy = self._limits.get(provider)
        if policy is None:
            logger.debug("explicit_usage_untracked", provider=provider)
            return

        if policy.reset_type == ResetType.PAID or is_paid_provider:
            await self._quota.record_paid_only(provider)
        else:
            await self._quota.record_usage(provider)
        SEARCH_ROUTES_TOTAL.labels(provider=provider, tier="explicit").inc()

    async def get_usage_stats(self, now: datetime | None = None) -> BudgetStats:
        return await self._stats.get_usage_stats(now)

    def reset_provider(self, provider: str) -> None:
        """Admin reset — clears the circuit for ``provider``."""
        self._circuit.reset(provider)

    # ── Special paths ────────────────────────────────────────
    async def _route_content(self, request: RouteRequest) -> RouteResult:
        name = self._content_provider
        provider = self._providers.get(name)
        if provider is None:
            raise ConfigurationError(
                f"{name} API key required for include_content option"
            )

        results = await self._invoke(name, provider, request, include_content=True)

        await self._quota.record_usage(name)
        self._circuit.record_success(name)
        SEARCH_ROUTES_TOTAL.labels(provider=name, tier="content").inc()
        return RouteResult(results=results, provider=name, used_paid_tier=False)

    async def _route_paid(self, request: RouteRequest, errors: dict[str, str]) -> RouteResult:
        name = self._google_paid_fallback if request.prefer_google else self._paid_fallback
        provider = self._providers.get(name)

        if provider is None:
            logger.error("no_providers_available", paid_fallback=name, errors=errors)
            if not errors:
                raise RoutingExhaustedError(
                    "No search providers available. Please configure at least one API key.",
                    errors,
                )
            raise RoutingExhaustedError(
                f"No search providers available: tried {', '.join(errors)} and "
                f"paid fallback {name} is not configured",
                errors,
            )

        if self._circuit.is_open(name):
            errors[name] = "circuit_open"
            logger.error("paid_fallback_circuit_open", provider=name, errors=errors)
            raise RoutingExhaustedError(
                f"No search providers available: free tiers exhausted and {name} is cooling down",
                errors,
            )

        logger.warning("free_tiers_exhausted_using_paid", provider=name, errors=errors)
        try:
            results = await self._invoke(name, provider, request)
        except ProviderCallError as exc:
            errors[name] = exc.message
            logger.error("paid_fallback_failed", provider=name, errors=errors)
            raise RoutingExhaustedError(
                f"No search providers available: all providers failed ({', '.join(errors)})",
                errors,
            ) from exc

        await self._quota.record_usage(name, paid=True)
        self._circuit.record_success(name)
        SEARCH_ROUTES_TOTAL.labels(provider=name, tier="paid").inc()
        return RouteResult(results=results, provider=name, used_paid_tier=True)

    # ── Provider invocation ──────────────────────────────────
    async def _invoke(
        self,
        name: str,
        provider: SearchProvider,
        request: RouteRequest,
        *,
        include_content: bool = False,
    ) -> list[SearchResult]:
        """Call one provider under its timeout.

        Every failure, timeouts included, is recorded on the circuit and
        re-raised as ``ProviderCallError``.
        """
        timeout = self._timeouts.get(name, self._default_timeout)
        start = time.monotonic()
        try:
            if include_content:
                coro = provider.search(request.query, request.limit, include_content=True)
            else:
                coro = provider.search(request.query, request.limit)
            results = await asyncio.wait_for(coro, timeout=timeout)
        except asyncio.TimeoutError as exc:
            self._circuit.record_failure(name)
            PROVIDER_FAILURES_TOTAL.labels(provider=name, reason="timeout").inc()
            raise ProviderCallError(name, f"Timeout after {timeout}s") from exc
        except ProviderCallError:
            self._circuit.record_failure(name)
            PROVIDER_FAILURES_TOTAL.labels(provider=name, reason="error").inc()
            raise
        except Exception as exc:
            self._circuit.record_failure(name)
            PROVIDER_FAILURES_TOTAL.labels(provider=name, reason="error").inc()
            raise ProviderCallError(name, f"{type(exc).__name__}: {exc}") from exc

        elapsed = time.monotonic() - start
        PROVIDER_LATENCY.labels(provider=name).observe(elapsed)
        logger.info(
            "provider_request_success",
            provider=name,
            results=len(results),
            latency_ms=round(elapsed * 1000, 1),
        )
        return results

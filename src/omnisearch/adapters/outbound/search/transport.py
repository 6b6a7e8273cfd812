"""Shared HTTP plumbing for search provider adapters."""

from __future__ import annotations

import logging

import httpx
import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from omnisearch.domain.exceptions import ProviderCallError

logger = structlog.get_logger(__name__)

DEFAULT_LIMIT = 10
MAX_ATTEMPTS = 2


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (httpx.NetworkError, httpx.TimeoutException)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code == 429 or exc.response.status_code >= 500
    return False


# Shared retry policy for provider requests; the router's timeout bounds the total
search_retry = retry(
    stop=stop_after_attempt(MAX_ATTEMPTS),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
    retry=retry_if_exception(_is_transient),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


def provider_error(provider: str, exc: httpx.HTTPError) -> ProviderCallError:
    """Translate an httpx failure into the router's provider error."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in (401, 403):
            return ProviderCallError(provider, f"Authentication failed (HTTP {status})")
        if status == 429:
            return ProviderCallError(provider, "Rate limit exceeded (HTTP 429)")
        return ProviderCallError(provider, f"HTTP {status}: {exc.response.text[:200]}")
    if isinstance(exc, httpx.TimeoutException):
        return ProviderCallError(provider, "Request timed out")
    return ProviderCallError(provider, f"{type(exc).__name__}: {exc}")


def attempt_timeout(total: float) -> float:
    """Per-attempt HTTP timeout that leaves room for a retry inside ``total``."""
    return total / (MAX_ATTEMPTS + 1)


def effective_limit(limit: int | None) -> int:
    return limit if limit and limit > 0 else DEFAULT_LIMIT

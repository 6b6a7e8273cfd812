"""Prometheus metrics for the search router."""

from __future__ import annotations

from prometheus_client import Counter, Histogram


# ── HTTP metrics ─────────────────────────────────────────────
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ── Routing metrics ──────────────────────────────────────────
SEARCH_ROUTES_TOTAL = Counter(
    "search_routes_total",
    "Searches served, by winning provider and tier",
    ["provider", "tier"],  # free / paid / content / explicit
)

PROVIDER_FAILURES_TOTAL = Counter(
    "search_provider_failures_total",
    "Failed provider attempts inside the router",
    ["provider", "reason"],  # timeout / error
)

CIRCUIT_OPENED_TOTAL = Counter(
    "search_circuit_opened_total",
    "Times a provider circuit entered cooldown",
    ["provider"],
)

PROVIDER_LATENCY = Histogram(
    "search_provider_latency_seconds",
    "Provider search latency",
    ["provider"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)

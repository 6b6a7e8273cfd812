"""Request context middleware — request id, access log and HTTP metrics.

Route handlers may set ``request.state.search_provider`` and
``request.state.used_paid_tier``; both end up in the access log and the
provider is echoed back as ``X-Search-Provider``.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from omnisearch.shared.observability.metrics import HTTP_REQUEST_DURATION, HTTP_REQUESTS_TOTAL

logger = structlog.get_logger(__name__)

UNMATCHED_ROUTE = "unmatched"


def route_template(request: Request) -> str:
    """Matched path template (``/api/v1/providers/{name}/reset``), never the raw path."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start = time.monotonic()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            duration = time.monotonic() - start
            endpoint = route_template(request)
            HTTP_REQUESTS_TOTAL.labels(
                method=request.method, endpoint=endpoint, status_code=status_code
            ).inc()
            HTTP_REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(duration)

            provider = getattr(request.state, "search_provider", None)
            logger.info(
                "http_request",
                method=request.method,
                endpoint=endpoint,
                status=status_code,
                duration_ms=round(duration * 1000, 2),
                search_provider=provider,
                used_paid_tier=getattr(request.state, "used_paid_tier", None),
            )
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers["X-Request-ID"] = request_id
        if provider:
            response.headers["X-Search-Provider"] = provider
        return response

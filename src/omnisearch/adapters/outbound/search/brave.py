"""Brave Search adapter — GET /web/search with subscription-token auth."""

from __future__ import annotations

from typing import Any

import httpx

from omnisearch.adapters.outbound.search.transport import (
    effective_limit,
    provider_error,
    search_retry,
)
from omnisearch.domain.exceptions import ProviderCallError
from omnisearch.ports.outbound import SearchProvider
from omnisearch.shared.providers.types import SearchResult

_BASE_URL = "https://api.search.brave.com/res/v1"
_MAX_COUNT = 20


class BraveSearchAdapter(SearchProvider):
    name = "brave"

    def __init__(self, api_key: str, *, base_url: str = _BASE_URL, timeout: float = 30.0) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Accept": "application/json",
                "X-Subscription-Token": api_key,
            },
            timeout=timeout,
        )

    @search_retry
    async def _request(self, query: str, count: int) -> dict[str, Any]:
        resp = await self._client.get("/web/search", params={"q": query, "count": count})
        resp.raise_for_status()
        return resp.json()

    async def search(
        self,
        query: str,
        limit: int | None = None,
        *,
        include_content: bool = False,
    ) -> list[SearchResult]:
        count = min(effective_limit(limit), _MAX_COUNT)
        try:
            payload = await self._request(query, count)
        except httpx.HTTPError as exc:
            raise provider_error(self.name, exc) from exc

        web = payload.get("web") if isinstance(payload, dict) else None
        if not isinstance(web, dict) or not isinstance(web.get("results"), list):
            # Brave omits "web" entirely when nothing matched
            if isinstance(payload, dict) and "web" not in payload:
                return []
            raise ProviderCallError(self.name, "Invalid response format from Brave")

        return [
            SearchResult(
                title=hit.get("title") or "",
                url=hit.get("url") or "",
                snippet=hit.get("description") or "",
                position=idx + 1,
                source_provider=self.name,
                metadata={"age": hit["age"]} if hit.get("age") else None,
            )
            for idx, hit in enumerate(web["results"][:count])
        ]

    async def close(self) -> None:
        await self._client.aclose()

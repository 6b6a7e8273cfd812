"""Tavily adapter — POST /search with the API key in the JSON body."""

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

_BASE_URL = "https://api.tavily.com"


class TavilySearchAdapter(SearchProvider):
    name = "tavily"

    def __init__(self, api_key: str, *, base_url: str = _BASE_URL, timeout: float = 30.0) -> None:
        self._api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )

    @search_retry
    async def _request(self, query: str, max_results: int) -> dict[str, Any]:
        resp = await self._client.post(
            "/search",
            json={
                "api_key": self._api_key,
                "query": query,
                "max_results": max_results,
                "search_depth": "basic",
            },
        )
        resp.raise_for_status()
        return resp.json()

    async def search(
        self,
        query: str,
        limit: int | None = None,
        *,
        include_content: bool = False,
    ) -> list[SearchResult]:
        max_results = effective_limit(limit)
        try:
            payload = await self._request(query, max_results)
        except httpx.HTTPError as exc:
            raise provider_error(self.name, exc) from exc

        hits = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(hits, list):
            raise ProviderCallError(self.name, "Invalid response format from Tavily")

        return [
            SearchResult(
                title=hit.get("title") or "",
                url=hit.get("url") or "",
                snippet=hit.get("content") or "",
                position=idx + 1,
                source_provider=self.name,
                metadata={"score": hit["score"]} if hit.get("score") is not None else None,
            )
            for idx, hit in enumerate(hits[:max_results])
        ]

    async def close(self) -> None:
        await self._client.aclose()

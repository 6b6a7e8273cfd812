"""You.com adapter — GET /search?query=."""

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

_BASE_URL = "https://api.ydc-index.io"


class YouComSearchAdapter(SearchProvider):
    name = "youcom"

    def __init__(self, api_key: str, *, base_url: str = _BASE_URL, timeout: float = 30.0) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"X-API-Key": api_key},
            timeout=timeout,
        )

    @search_retry
    async def _request(self, query: str) -> dict[str, Any]:
        resp = await self._client.get("/search", params={"query": query})
        resp.raise_for_status()
        return resp.json()

    async def search(
        self,
        query: str,
        limit: int | None = None,
        *,
        include_content: bool = False,
    ) -> list[SearchResult]:
        try:
            payload = await self._request(query)
        except httpx.HTTPError as exc:
            raise provider_error(self.name, exc) from exc

        hits = payload.get("hits") if isinstance(payload, dict) else None
        if not isinstance(hits, list):
            raise ProviderCallError(self.name, "Invalid response format from You.com")

        results: list[SearchResult] = []
        for idx, hit in enumerate(hits[: effective_limit(limit)]):
            snippets = hit.get("snippets") or []
            results.append(
                SearchResult(
                    title=hit.get("title") or "",
                    url=hit.get("url") or "",
                    snippet=hit.get("description") or " ".join(snippets),
                    position=idx + 1,
                    source_provider=self.name,
                    metadata={"snippet_count": len(snippets)} if snippets else None,
                )
            )
        return results

    async def close(self) -> None:
        await self._client.aclose()

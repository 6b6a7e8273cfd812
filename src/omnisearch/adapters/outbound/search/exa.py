"""Exa adapter — neural search, POST /search."""

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

_BASE_URL = "https://api.exa.ai"
_SNIPPET_CHARS = 300


class ExaSearchAdapter(SearchProvider):
    name = "exa"

    def __init__(self, api_key: str, *, base_url: str = _BASE_URL, timeout: float = 30.0) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"x-api-key": api_key, "Content-Type": "application/json"},
            timeout=timeout,
        )

    @search_retry
    async def _request(self, query: str, num_results: int) -> dict[str, Any]:
        resp = await self._client.post(
            "/search",
            json={
                "query": query,
                "numResults": num_results,
                "contents": {"text": {"maxCharacters": _SNIPPET_CHARS}},
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
        num_results = effective_limit(limit)
        try:
            payload = await self._request(query, num_results)
        except httpx.HTTPError as exc:
            raise provider_error(self.name, exc) from exc

        hits = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(hits, list):
            raise ProviderCallError(self.name, "Invalid response format from Exa")

        results: list[SearchResult] = []
        for idx, hit in enumerate(hits[:num_results]):
            meta = {k: hit[k] for k in ("publishedDate", "author", "score") if hit.get(k) is not None}
            results.append(
                SearchResult(
                    title=hit.get("title") or "",
                    url=hit.get("url") or "",
                    snippet=(hit.get("text") or "")[:_SNIPPET_CHARS],
                    position=idx + 1,
                    source_provider=self.name,
                    metadata=meta or None,
                )
            )
        return results

    async def close(self) -> None:
        await self._client.aclose()

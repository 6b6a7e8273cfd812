"""Jina Search adapter — GET /{query}, optionally with full page content.

The only adapter that honours ``include_content``; the router sends every
content request here.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from omnisearch.adapters.outbound.search.transport import (
    effective_limit,
    provider_error,
    search_retry,
)
from omnisearch.domain.exceptions import ProviderCallError
from omnisearch.ports.outbound import SearchProvider
from omnisearch.shared.providers.types import SearchResult

_BASE_URL = "https://s.jina.ai"


class JinaSearchAdapter(SearchProvider):
    name = "jina_search"

    def __init__(self, api_key: str, *, base_url: str = _BASE_URL, timeout: float = 30.0) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=timeout,
        )

    @search_retry
    async def _request(self, query: str, include_content: bool) -> dict[str, Any]:
        headers = {} if include_content else {"X-Respond-With": "no-content"}
        resp = await self._client.get(f"/{quote(query, safe='')}", headers=headers)
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
            payload = await self._request(query, include_content)
        except httpx.HTTPError as exc:
            raise provider_error(self.name, exc) from exc

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            message = payload.get("message") if isinstance(payload, dict) else None
            raise ProviderCallError(
                self.name, f"Invalid response format from Jina Search: {message or 'no data'}"
            )

        results: list[SearchResult] = []
        for idx, hit in enumerate(data[: effective_limit(limit)]):
            content = hit.get("content")
            results.append(
                SearchResult(
                    title=hit.get("title") or "",
                    url=hit.get("url") or "",
                    snippet=hit.get("description") or "",
                    position=idx + 1,
                    source_provider=self.name,
                    content=content if include_content else None,
                    metadata={"has_content": True, "content_length": len(content)} if content else None,
                )
            )
        return results

    async def close(self) -> None:
        await self._client.aclose()

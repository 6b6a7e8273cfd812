"""Serper adapter — Google results via POST /search."""

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

_BASE_URL = "https://google.serper.dev"


class SerperSearchAdapter(SearchProvider):
    name = "serper"

    def __init__(self, api_key: str, *, base_url: str = _BASE_URL, timeout: float = 30.0) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"X-API-KEY": api_key, "Content-Type": "application/json"},
            timeout=timeout,
        )

    @search_retry
    async def _request(self, query: str, num: int) -> dict[str, Any]:
        resp = await self._client.post("/search", json={"q": query, "num": num})
        resp.raise_for_status()
        return resp.json()

    async def search(
        self,
        query: str,
        limit: int | None = None,
        *,
        include_content: bool = False,
    ) -> list[SearchResult]:
        num = effective_limit(limit)
        try:
            payload = await self._request(query, num)
        except httpx.HTTPError as exc:
            raise provider_error(self.name, exc) from exc

        organic = payload.get("organic") if isinstance(payload, dict) else None
        if not isinstance(organic, list):
            raise ProviderCallError(self.name, "Invalid response format from Serper")

        return [
            SearchResult(
                title=hit.get("title") or "",
                url=hit.get("link") or "",
                snippet=hit.get("snippet") or "",
                position=hit.get("position") or idx + 1,
                source_provider=self.name,
                metadata=(
                    {"date": hit["date"], "has_sitelinks": bool(hit.get("sitelinks"))}
                    if hit.get("date")
                    else None
                ),
            )
            for idx, hit in enumerate(organic)
        ]

    async def close(self) -> None:
        await self._client.aclose()

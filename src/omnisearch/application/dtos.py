"""Request / response DTOs for the REST layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=2000)
    limit: int | None = Field(default=None, ge=1, le=50)
    provider: str | None = Field(
        default=None, description="Bypass budget routing and call this provider directly"
    )
    include_content: bool = False


class SearchResultItem(BaseModel):
    title: str
    url: str
    snippet: str
    position: int
    source_provider: str
    content: str | None = None
    metadata: dict[str, Any] | None = None


class SearchResponse(BaseModel):
    provider: str
    used_paid_tier: bool
    results: list[SearchResultItem]


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    services: dict[str, str]


class ProviderStatusResponse(BaseModel):
    name: str
    registered: bool
    status: str
    failures: int
    cooldown_until: str | None = None

"""Search provider adapters and the one-time credential scan."""

from __future__ import annotations

from typing import Callable

import structlog

from omnisearch.adapters.outbound.search.brave import BraveSearchAdapter
from omnisearch.adapters.outbound.search.exa import ExaSearchAdapter
from omnisearch.adapters.outbound.search.jina import JinaSearchAdapter
from omnisearch.adapters.outbound.search.serper import SerperSearchAdapter
from omnisearch.adapters.outbound.search.tavily import TavilySearchAdapter
from omnisearch.adapters.outbound.search.transport import attempt_timeout
from omnisearch.adapters.outbound.search.youcom import YouComSearchAdapter
from omnisearch.config import Settings
from omnisearch.ports.outbound import SearchProvider

logger = structlog.get_logger(__name__)

AdapterFactory = Callable[..., SearchProvider]

# name -> (adapter class, settings attribute holding the key, base-url attribute)
_ADAPTERS: dict[str, tuple[AdapterFactory, str, str]] = {
    "brave": (BraveSearchAdapter, "brave_api_key", "brave_base_url"),
    "tavily": (TavilySearchAdapter, "tavily_api_key", "tavily_base_url"),
    "exa": (ExaSearchAdapter, "exa_api_key", "exa_base_url"),
    "jina_search": (JinaSearchAdapter, "jina_api_key", "jina_base_url"),
    "serper": (SerperSearchAdapter, "serper_api_key", "serper_base_url"),
    "youcom": (YouComSearchAdapter, "youcom_api_key", "youcom_base_url"),
}


def is_api_key_valid(api_key: str | None) -> bool:
    return bool(api_key and api_key.strip())


def build_search_providers(settings: Settings) -> dict[str, SearchProvider]:
    """Instantiate an adapter for every provider whose API key is set."""
    providers: dict[str, SearchProvider] = {}
    skipped: list[str] = []

    for name, (factory, key_attr, url_attr) in _ADAPTERS.items():
        api_key = getattr(settings, key_attr)
        if not is_api_key_valid(api_key):
            skipped.append(name)
            continue
        providers[name] = factory(
            api_key.strip(),
            base_url=getattr(settings, url_attr),
            timeout=attempt_timeout(settings.timeout_for(name)),
        )

    logger.info("search_providers_registered", registered=list(providers), skipped=skipped)
    return providers


__all__ = [
    "BraveSearchAdapter",
    "ExaSearchAdapter",
    "JinaSearchAdapter",
    "SerperSearchAdapter",
    "TavilySearchAdapter",
    "YouComSearchAdapter",
    "build_search_providers",
    "is_api_key_valid",
]

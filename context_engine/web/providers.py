"""Web search providers — Google Custom Search and Brave Search over httpx."""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlparse

import httpx

from context_engine.config import settings
from context_engine.errors import SearchProviderError
from context_engine.models import SearchResult

logger = logging.getLogger(__name__)

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"
GOOGLE_MAX_RESULTS = 10
BRAVE_MAX_RESULTS = 20


@runtime_checkable
class SearchProvider(Protocol):
    """Anything that turns a query into ranked search results."""

    async def search(self, query: str, count: int) -> list[SearchResult]:
        """Return at most *count* results, best first."""
        ...


def _hostname(url: str) -> str:
    return urlparse(url).hostname or ""


async def _get_json(
    url: str,
    *,
    params: dict[str, Any],
    headers: dict[str, str] | None = None,
    timeout: float,
    provider: str,
) -> dict[str, Any]:
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(url, headers=headers, params=params)
    except httpx.HTTPError as exc:
        msg = f"{provider} search request failed: {exc}"
        raise SearchProviderError(msg) from exc

    if resp.status_code != 200:
        msg = f"{provider} search returned {resp.status_code}: {resp.text[:200]}"
        raise SearchProviderError(msg)
    return resp.json()


class GoogleSearchProvider:
    """Google Custom Search JSON API, biased to the past year, newest first."""

    def __init__(
        self,
        api_key: str | None = None,
        engine_id: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.google_search_api_key
        self._engine_id = engine_id if engine_id is not None else settings.google_search_engine_id
        self._timeout = timeout or settings.search_timeout

    async def search(self, query: str, count: int) -> list[SearchResult]:
        if not self._api_key or not self._engine_id:
            msg = "GOOGLE_SEARCH_API_KEY and GOOGLE_SEARCH_ENGINE_ID must be configured."
            raise SearchProviderError(msg)

        params = {
            "q": query,
            "cx": self._engine_id,
            "key": self._api_key,
            "num": max(1, min(count, GOOGLE_MAX_RESULTS)),
            "dateRestrict": "y1",
            "sort": "date",
        }
        data = await _get_json(
            GOOGLE_SEARCH_URL, params=params, timeout=self._timeout, provider="Google"
        )
        return [self._to_result(item) for item in data.get("items", [])][:count]

    @staticmethod
    def _to_result(item: dict[str, Any]) -> SearchResult:
        link = item.get("link", "")
        metatags = (item.get("pagemap") or {}).get("metatags") or [{}]
        meta = metatags[0] or {}
        return SearchResult(
            title=item.get("title", ""),
            link=link,
            snippet=item.get("snippet", ""),
            published_date=meta.get("article:published_time") or meta.get("og:updated_time"),
            source=item.get("displayLink") or _hostname(link),
        )


class BraveSearchProvider:
    """Brave Search web results."""

    def __init__(self, api_key: str | None = None, timeout: float | None = None) -> None:
        self._api_key = api_key if api_key is not None else settings.brave_search_api_key
        self._timeout = timeout or settings.search_timeout

    async def search(self, query: str, count: int) -> list[SearchResult]:
        if not self._api_key:
            msg = "BRAVE_SEARCH_API_KEY is not configured."
            raise SearchProviderError(msg)

        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip",
            "X-Subscription-Token": self._api_key,
        }
        params = {"q": query, "count": max(1, min(count, BRAVE_MAX_RESULTS))}
        data = await _get_json(
            BRAVE_SEARCH_URL,
            params=params,
            headers=headers,
            timeout=self._timeout,
            provider="Brave",
        )
        web_results = data.get("web", {}).get("results", [])
        return [self._to_result(r) for r in web_results][:count]

    @staticmethod
    def _to_result(item: dict[str, Any]) -> SearchResult:
        url = item.get("url", "")
        return SearchResult(
            title=item.get("title", ""),
            link=url,
            snippet=item.get("description", ""),
            published_date=item.get("page_age"),
            source=(item.get("meta_url") or {}).get("hostname") or _hostname(url),
        )


def make_provider(name: str | None = None) -> SearchProvider:
    """Build the provider named by *name* (default ``settings.search_provider``)."""
    name = (name or settings.search_provider).lower()
    if name == "google":
        return GoogleSearchProvider()
    if name == "brave":
        return BraveSearchProvider()
    msg = f"Unknown search provider '{name}'"
    raise ValueError(msg)

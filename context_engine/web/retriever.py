"""Web retrieval: enhanced search plus page enrichment for the top hits."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from context_engine.classifier import enhance_query
from context_engine.config import settings
from context_engine.web.pages import extract_additional_content, fetch_page

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from context_engine.models import SearchResult
    from context_engine.web.providers import SearchProvider

logger = logging.getLogger(__name__)


class WebRetriever:
    """Runs a provider search and enriches the first results with page text.

    Provider failures propagate as ``SearchProviderError``. Enrichment
    failures never do: the affected result simply has no additional content.
    """

    def __init__(
        self,
        provider: SearchProvider,
        *,
        enrich_top: int | None = None,
        page_timeout: float | None = None,
        page_fetcher: Callable[[str, float], Awaitable[str]] = fetch_page,
    ) -> None:
        self._provider = provider
        self._enrich_top = settings.enrich_top_results if enrich_top is None else enrich_top
        self._page_timeout = settings.page_fetch_timeout if page_timeout is None else page_timeout
        self._fetch_page = page_fetcher

    async def search(self, query: str, max_results: int) -> list[SearchResult]:
        """Search for *query* and return at most *max_results* results."""
        enhanced = enhance_query(query)
        logger.info("Web search: %r (enhanced from %r)", enhanced, query)

        results = (await self._provider.search(enhanced, max_results))[:max_results]
        top = results[: self._enrich_top]
        if top:
            await asyncio.gather(*(self._enrich(result) for result in top))
        return results

    async def _enrich(self, result: SearchResult) -> None:
        """Attach the page's substantial paragraphs to *result*, if any."""
        try:
            html = await self._fetch_page(result.link, self._page_timeout)
            content = await asyncio.to_thread(extract_additional_content, html)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not fetch additional content for %s: %s", result.link, exc)
            return
        if content:
            result.additional_content = content

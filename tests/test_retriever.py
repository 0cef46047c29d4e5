"""Tests for WebRetriever — search plus top-result enrichment."""

from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest

from context_engine.errors import PageFetchError, SearchProviderError
from context_engine.models import SearchResult
from context_engine.web.retriever import WebRetriever

PARAGRAPH = "A substantial paragraph about the monsoon that easily runs past the one hundred character threshold used."  # noqa: E501


def _results(n: int) -> list[SearchResult]:
    return [
        SearchResult(title=f"Result {i}", link=f"https://site{i}.example/", snippet=f"s{i}")
        for i in range(n)
    ]


def _provider(results: list[SearchResult]) -> AsyncMock:
    provider = AsyncMock()
    provider.search.return_value = results
    return provider


async def test_enriches_only_top_two() -> None:
    fetcher = AsyncMock(return_value=f"<article><p>{PARAGRAPH}</p></article>")
    retriever = WebRetriever(_provider(_results(4)), enrich_top=2, page_fetcher=fetcher)

    results = await retriever.search("monsoon", 4)

    assert len(results) == 4
    assert results[0].additional_content == PARAGRAPH
    assert results[1].additional_content == PARAGRAPH
    assert results[2].additional_content is None
    assert results[3].additional_content is None
    assert fetcher.await_count == 2


async def test_enrichment_failure_is_per_result() -> None:
    async def fetcher(url: str, timeout: float) -> str:
        if "site0" in url:
            raise PageFetchError("boom")
        return f"<p>{PARAGRAPH}</p>"

    retriever = WebRetriever(_provider(_results(3)), enrich_top=2, page_fetcher=fetcher)
    results = await retriever.search("monsoon", 3)

    assert len(results) == 3
    assert results[0].additional_content is None
    assert results[1].additional_content == PARAGRAPH


async def test_page_timeout_passed_to_fetcher() -> None:
    fetcher = AsyncMock(return_value="<p>tiny</p>")
    retriever = WebRetriever(
        _provider(_results(1)), enrich_top=2, page_timeout=5.0, page_fetcher=fetcher
    )
    with patch("context_engine.web.pages.trafilatura") as mock_traf:
        mock_traf.extract.return_value = None
        results = await retriever.search("monsoon", 1)

    fetcher.assert_awaited_once_with("https://site0.example/", 5.0)
    assert results[0].additional_content is None


async def test_truncates_to_max_results() -> None:
    retriever = WebRetriever(_provider(_results(6)), enrich_top=0, page_fetcher=AsyncMock())
    results = await retriever.search("monsoon", 3)
    assert len(results) == 3


async def test_searches_with_enhanced_query() -> None:
    provider = _provider([])
    retriever = WebRetriever(provider, page_fetcher=AsyncMock())

    with patch("context_engine.classifier.datetime") as mock_dt:
        mock_dt.now.return_value = datetime(2026, 10, 18)
        await retriever.search("latest news on elections", 4)

    provider.search.assert_awaited_once_with(
        "latest news on elections October 2026 latest information", 4
    )


async def test_provider_failure_propagates() -> None:
    provider = AsyncMock()
    provider.search.side_effect = SearchProviderError("quota")
    retriever = WebRetriever(provider, page_fetcher=AsyncMock())

    with pytest.raises(SearchProviderError):
        await retriever.search("latest news", 4)

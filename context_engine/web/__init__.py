"""Web search, page enrichment and result formatting."""

from context_engine.web.formatting import NO_RESULTS, format_results
from context_engine.web.pages import extract_additional_content, fetch_page
from context_engine.web.providers import (
    BraveSearchProvider,
    GoogleSearchProvider,
    SearchProvider,
    make_provider,
)
from context_engine.web.retriever import WebRetriever

__all__ = [
    "NO_RESULTS",
    "BraveSearchProvider",
    "GoogleSearchProvider",
    "SearchProvider",
    "WebRetriever",
    "extract_additional_content",
    "fetch_page",
    "format_results",
    "make_provider",
]

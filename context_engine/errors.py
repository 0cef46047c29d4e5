"""Exception types raised by engine components.

``ContextEngine.build_context`` catches all of these; they only reach the
host application through the lower-level components.
"""


class ContextEngineError(Exception):
    """Base class for context engine failures."""


class StoreUnavailable(ContextEngineError):
    """Raised when the message store cannot be read or written."""


class SearchProviderError(ContextEngineError):
    """Raised when the web search provider fails (network, quota, config)."""


class PageFetchError(ContextEngineError):
    """Raised when a result page cannot be fetched for enrichment."""

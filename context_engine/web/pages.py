"""Fetch result pages and pull out a few substantial paragraphs."""

import logging

import httpx
import trafilatura
from bs4 import BeautifulSoup

from context_engine.config import settings
from context_engine.errors import PageFetchError

logger = logging.getLogger(__name__)

MAX_DOWNLOAD_BYTES = 5 * 1024 * 1024  # 5 MB
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

# Tried in order; the first match is the content container.
CONTENT_SELECTORS = (
    "article",
    ".article-content",
    ".post-content",
    ".entry-content",
    "main",
    "#content",
    ".content",
)
MIN_PARAGRAPH_LENGTH = 100
MAX_PARAGRAPHS = 3


def _is_html(content_type: str) -> bool:
    """Check if a Content-Type header value indicates HTML."""
    ct = content_type.lower().split(";")[0].strip()
    return ct in ("text/html", "application/xhtml+xml")


def _substantial(texts: list[str]) -> list[str]:
    return [t for t in texts if len(t) > MIN_PARAGRAPH_LENGTH][:MAX_PARAGRAPHS]


def extract_paragraphs(html: str) -> list[str]:
    """Return up to 3 paragraphs longer than 100 characters from the main content."""
    soup = BeautifulSoup(html, "html.parser")

    container = None
    for selector in CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is not None:
            break
    if container is None:
        container = soup.body or soup

    paragraphs = _substantial([p.get_text().strip() for p in container.find_all("p")])
    if paragraphs:
        return paragraphs

    # Pages without <p> markup: fall back to trafilatura's main-text extraction
    text = trafilatura.extract(html)
    if not text:
        return []
    return _substantial([line.strip() for line in text.splitlines()])


def extract_additional_content(html: str) -> str | None:
    """Join the substantial paragraphs of a page, or None if there are none."""
    paragraphs = extract_paragraphs(html)
    return "\n\n".join(paragraphs) if paragraphs else None


async def fetch_page(url: str, timeout: float | None = None) -> str:
    """Download an HTML page. Raises PageFetchError on any failure."""
    try:
        async with httpx.AsyncClient(
            timeout=timeout or settings.page_fetch_timeout,
            follow_redirects=True,
            headers={"User-Agent": DEFAULT_USER_AGENT},
            max_redirects=5,
        ) as client:
            resp = await client.get(url)
    except httpx.TimeoutException as exc:
        msg = f"Timeout fetching {url}"
        raise PageFetchError(msg) from exc
    except httpx.HTTPError as exc:
        msg = f"Failed to fetch {url}: {exc}"
        raise PageFetchError(msg) from exc

    if resp.status_code != 200:
        msg = f"HTTP {resp.status_code} fetching {url}"
        raise PageFetchError(msg)

    content_type = resp.headers.get("content-type", "")
    if not _is_html(content_type):
        msg = f"Not an HTML page (Content-Type: {content_type})"
        raise PageFetchError(msg)

    # Guard against huge pages
    if len(resp.content) > MAX_DOWNLOAD_BYTES:
        msg = f"Page too large ({len(resp.content)} bytes, max {MAX_DOWNLOAD_BYTES})"
        raise PageFetchError(msg)

    return resp.text

"""Small text helpers shared by the prompt sections."""

from datetime import datetime

from context_engine.config import settings


def truncate_text(text: str, max_length: int) -> str:
    """Cut *text* to *max_length* characters, marking the cut with ``...``."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def format_date(value: str | None, fmt: str | None = None) -> str | None:
    """Render an ISO 8601 timestamp as a short date, or None if unparseable."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    return parsed.strftime(fmt or settings.date_format)

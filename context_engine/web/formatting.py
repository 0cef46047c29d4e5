"""Render search results as a text block for the system prompt."""

from context_engine.formatting import format_date
from context_engine.models import SearchResult

NO_RESULTS = "No search results found."
RESULT_SEPARATOR = "\n---\n\n"


def _format_result(index: int, result: SearchResult) -> str:
    date = format_date(result.published_date)
    heading = f"[{index}] {result.title}"
    if date:
        heading += f" ({date})"

    lines = [heading]
    if result.source:
        lines.append(f"Source: {result.source}")
    lines.append(f"URL: {result.link}")
    lines.append(result.snippet)
    text = "\n".join(lines) + "\n"

    if result.additional_content:
        text += f"\nAdditional content:\n{result.additional_content}\n"
    return text


def format_results(results: list[SearchResult]) -> str:
    """Number and join results; a fixed sentence when there are none."""
    if not results:
        return NO_RESULTS
    return RESULT_SEPARATOR.join(
        _format_result(i, result) for i, result in enumerate(results, start=1)
    )

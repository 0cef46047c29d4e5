"""Text sections that make up the retrieved-context preamble."""

from context_engine.config import settings
from context_engine.formatting import format_date, truncate_text
from context_engine.models import ConceptMemoryEntry, RelatedMessage

WEB_HEADER = "Recent web search results:"
RELATED_HEADER = "Related information from your previous conversations:"
CONCEPTS_HEADER = "Key concepts from this conversation:"

USAGE_INSTRUCTIONS = """IMPORTANT INSTRUCTIONS FOR USING SEARCH RESULTS:
1. For questions about current events, news, or time-sensitive information, ALWAYS use the web search results above.
2. Synthesize information from ALL search results to provide a comprehensive answer.
3. Include specific details, facts, figures, and dates from the search results.
4. Cite sources by mentioning the source name or URL when providing specific information.
5. If search results contain conflicting information, acknowledge this and present multiple perspectives.
6. If the search results don't fully answer the question, clearly state what information is missing.
7. NEVER say your knowledge is limited or outdated when search results are available.
8. NEVER make up information - if the search results don't contain certain details, acknowledge this gap."""


def format_web_section(web_text: str) -> str:
    """Label formatted search results. Empty in, empty out."""
    if not web_text:
        return ""
    return f"{WEB_HEADER}\n{web_text}\n\n"


def _format_related(messages: list[RelatedMessage], max_chars: int) -> str:
    if not messages:
        return ""

    parts = [f"{RELATED_HEADER}\n\n"]
    for i, msg in enumerate(messages, start=1):
        date = format_date(msg.created_at) or "unknown date"
        parts.append(
            f'[{i}] From "{msg.conversation_title}" ({date}):\n'
            f"{truncate_text(msg.content, max_chars)}\n\n"
        )
    return "".join(parts)


def _format_concepts(concepts: list[ConceptMemoryEntry]) -> str:
    if not concepts:
        return ""

    lines = [CONCEPTS_HEADER]
    for entry in concepts:
        lines.append(f"- {entry.key_concept} (relevance: {entry.relevance_score:.2f})")
    return "\n".join(lines) + "\n"


def format_database_context(
    related: list[RelatedMessage],
    concepts: list[ConceptMemoryEntry],
    max_chars: int | None = None,
) -> str:
    """Render related past replies and this conversation's top concepts."""
    max_chars = max_chars or settings.related_snippet_chars
    return _format_related(related, max_chars) + _format_concepts(concepts)


def combine_sections(web_section: str, usage_instructions: str, database_context: str) -> str:
    """Web results first, then their usage rules, then database context."""
    context = web_section
    if web_section and usage_instructions:
        context += f"{usage_instructions}\n\n"
    return context + database_context

"""Tests for search-result and context-section formatting."""

from context_engine.formatting import format_date, truncate_text
from context_engine.models import ConceptMemoryEntry, RelatedMessage, SearchResult
from context_engine.prompt import (
    CONCEPTS_HEADER,
    RELATED_HEADER,
    USAGE_INSTRUCTIONS,
    combine_sections,
    format_database_context,
    format_web_section,
)
from context_engine.web.formatting import NO_RESULTS, RESULT_SEPARATOR, format_results

# -- helpers -----------------------------------------------------------------


def test_truncate_text_short_unchanged() -> None:
    assert truncate_text("short", 300) == "short"


def test_truncate_text_adds_ellipsis() -> None:
    assert truncate_text("x" * 301, 300) == "x" * 300 + "..."


def test_format_date_iso() -> None:
    assert format_date("2026-06-01T08:00:00+05:30", "%d/%m/%Y") == "01/06/2026"


def test_format_date_invalid_or_missing() -> None:
    assert format_date("yesterday-ish") is None
    assert format_date(None) is None
    assert format_date("") is None


# -- format_results ------------------------------------------------------------


def test_format_results_empty() -> None:
    assert format_results([]) == NO_RESULTS


def test_format_results_without_additional_content() -> None:
    result = SearchResult(
        title="Monsoon update",
        link="https://news.example.in/monsoon",
        snippet="IMD says the monsoon is on time.",
        source="news.example.in",
    )
    text = format_results([result])

    assert text.startswith("[1] Monsoon update\n")
    assert "Source: news.example.in" in text
    assert "URL: https://news.example.in/monsoon" in text
    assert "IMD says the monsoon is on time." in text
    assert "Additional content" not in text


def test_format_results_with_date_and_additional_content() -> None:
    results = [
        SearchResult(
            title="A",
            link="https://a.example",
            snippet="sa",
            source="a.example",
            published_date="2026-06-01T08:00:00",
            additional_content="Long paragraph.",
        ),
        SearchResult(title="B", link="https://b.example", snippet="sb"),
    ]
    text = format_results(results)

    first, second = text.split(RESULT_SEPARATOR)
    assert first.startswith("[1] A (01/06/2026)\n")
    assert "\nAdditional content:\nLong paragraph.\n" in first
    assert second.startswith("[2] B\n")
    assert "Source:" not in second


# -- context sections ------------------------------------------------------------


def test_web_section_empty() -> None:
    assert format_web_section("") == ""


def test_web_section_labelled() -> None:
    assert format_web_section("[1] A") == "Recent web search results:\n[1] A\n\n"


def test_database_context_empty() -> None:
    assert format_database_context([], []) == ""


def test_database_context_renders_related_and_concepts() -> None:
    related = [
        RelatedMessage(
            content="m" * 400,
            conversation_title="Kerala plans",
            created_at="2026-05-02T10:00:00+00:00",
        )
    ]
    concepts = [
        ConceptMemoryEntry(conversation_id=1, key_concept="monsoon", relevance_score=0.77),
        ConceptMemoryEntry(conversation_id=1, key_concept="kerala", relevance_score=0.65),
    ]

    text = format_database_context(related, concepts, max_chars=300)

    assert text.startswith(f"{RELATED_HEADER}\n\n")
    assert '[1] From "Kerala plans" (02/05/2026):\n' in text
    assert "m" * 300 + "...\n" in text
    assert "m" * 301 not in text
    assert f"{CONCEPTS_HEADER}\n- monsoon (relevance: 0.77)\n- kerala (relevance: 0.65)\n" in text


def test_combine_sections_orders_web_instructions_database() -> None:
    combined = combine_sections("WEB\n\n", USAGE_INSTRUCTIONS, "DB\n")
    assert combined.index("WEB") < combined.index("IMPORTANT INSTRUCTIONS") < combined.index("DB")


def test_combine_sections_skips_instructions_without_web() -> None:
    assert combine_sections("", USAGE_INSTRUCTIONS, "DB\n") == "DB\n"

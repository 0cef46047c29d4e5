"""Tests for query classification and enhancement."""

from datetime import datetime

import pytest

from context_engine.classifier import enhance_query, needs_recent_info

OCT_2026 = datetime(2026, 10, 18, 9, 30)


@pytest.mark.parametrize(
    "query",
    [
        "What's the weather today?",
        "latest news on elections",
        "Gold price in Mumbai",
        "Who won the match in 2024",
        "Is there any BREAKING story",
    ],
)
def test_needs_recent_info_true(query: str) -> None:
    assert needs_recent_info(query) is True


@pytest.mark.parametrize(
    "query",
    [
        "Explain photosynthesis",
        "Write a haiku about rivers",
        "How do I reverse a list in Python",
        "",
    ],
)
def test_needs_recent_info_false(query: str) -> None:
    assert needs_recent_info(query) is False


def test_enhance_strips_question_words_and_mark() -> None:
    enhanced = enhance_query("What is the capital of India?", now=OCT_2026)
    assert enhanced.startswith("the capital of India")
    assert enhanced == "the capital of India"


def test_enhance_strips_contraction() -> None:
    assert enhance_query("Who's the author of Godan?", now=OCT_2026) == "the author of Godan"


def test_enhance_appends_month_and_year_for_current_queries() -> None:
    enhanced = enhance_query("latest news on elections", now=OCT_2026)
    assert enhanced == "latest news on elections October 2026 latest information"


def test_enhance_appends_locale_for_locale_topics() -> None:
    enhanced = enhance_query("public holiday list", now=OCT_2026, locale="India")
    assert enhanced == "public holiday list India"


def test_enhance_does_not_repeat_locale() -> None:
    enhanced = enhance_query("Indian government policy on EVs", now=OCT_2026, locale="India")
    assert enhanced == "Indian government policy on EVs"


def test_enhance_weather_today_gets_date_and_locale() -> None:
    enhanced = enhance_query(
        "What's the weather today?", now=OCT_2026, locale="India", locale_aliases=["india"]
    )
    assert enhanced == "the weather today October 2026 latest information India"


def test_enhance_plain_query_unchanged() -> None:
    assert enhance_query("photosynthesis steps", now=OCT_2026) == "photosynthesis steps"


@pytest.mark.parametrize(
    ("query", "expected"),
    [
        ("Will Smith latest movie", "Will Smith latest movie"),
        ("Can openers price", "Can openers price"),
        ("Is it raining in Delhi?", "it raining in Delhi"),
        ("How does the monsoon work?", "the monsoon work"),
        ("What is is a verb?", "is a verb"),
    ],
)
def test_enhance_strips_at_most_one_interrogative_and_auxiliary(
    query: str, expected: str
) -> None:
    enhanced = enhance_query(query, now=OCT_2026, locale="", locale_aliases=[])
    assert enhanced.startswith(expected)

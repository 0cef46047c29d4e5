"""Heuristic query classification and search-query rewriting.

Both functions are pure string transforms. Word lists are matched anywhere
in the query, case-insensitively; false positives are accepted.
"""

import re
from datetime import datetime

from context_engine.config import settings

RECENT_INFO_PATTERN = re.compile(
    r"current|when|latest|recent|today|now|yesterday|this week|this month|news|"
    r"weather|stock|price|update|trend|forecast|prediction|market|election|event|"
    r"covid|pandemic|happening|live|breaking|\b(?:19|20)\d{2}\b",
    re.IGNORECASE,
)

_LEADING_INTERROGATIVE = re.compile(
    r"^(?:what|who|when|where|why|how)(?:'s|'re)?\s+", re.IGNORECASE
)
_LEADING_AUXILIARY = re.compile(
    r"^(?:is|are|was|were|do|does|did|can|could|will|would|should|has|have)\s+",
    re.IGNORECASE,
)
_CURRENT_DATA_PATTERN = re.compile(r"current|latest|recent|today|now|update|news", re.IGNORECASE)
_LOCALE_TOPIC_PATTERN = re.compile(
    r"weather|event|festival|holiday|government|policy|law|regulation", re.IGNORECASE
)


def needs_recent_info(query: str) -> bool:
    """True if the query looks like it needs live or time-sensitive data."""
    return bool(RECENT_INFO_PATTERN.search(query))


def enhance_query(
    query: str,
    now: datetime | None = None,
    locale: str | None = None,
    locale_aliases: list[str] | None = None,
) -> str:
    """Rewrite a chat question into a web search query.

    At most one leading interrogative and one auxiliary are removed, plus a
    trailing ``?``. A bare leading auxiliary ("Can", "Will") is only dropped
    when the query is phrased as a question, so names and nouns survive.
    Time-sensitive queries get the current month and year appended;
    locale-sensitive topics get the locale appended unless already named.
    """
    enhanced = query.strip()
    is_question = enhanced.endswith("?")
    without_interrogative = _LEADING_INTERROGATIVE.sub("", enhanced, count=1)
    if without_interrogative != enhanced or is_question:
        without_interrogative = _LEADING_AUXILIARY.sub("", without_interrogative, count=1)
    enhanced = without_interrogative.rstrip("?").rstrip()

    if _CURRENT_DATA_PATTERN.search(query):
        now = now or datetime.now()
        enhanced += f" {now.strftime('%B')} {now.year} latest information"

    if _LOCALE_TOPIC_PATTERN.search(query):
        locale = locale if locale is not None else settings.target_locale
        if locale_aliases is None:
            locale_aliases = settings.get_locale_aliases()
        names = {locale.lower(), *locale_aliases}
        mentioned = any(
            re.search(rf"\b{re.escape(name)}\b", enhanced, re.IGNORECASE) for name in names if name
        )
        if locale and not mentioned:
            enhanced += f" {locale}"

    return enhanced

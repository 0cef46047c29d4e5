"""Cheap concept and keyword extraction from message text.

No stemming, no ranking: tokens are kept in first-occurrence order so the
same text always yields the same concepts.
"""

import re

MAX_CONCEPTS = 10
MAX_KEYWORDS = 5
MIN_TOKEN_LENGTH = 4

STOP_WORDS = frozenset(
    {"the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "is", "are", "was", "were"}
)
QUESTION_WORDS = frozenset({"what", "when", "where", "why", "how"})

_NON_WORD = re.compile(r"\W+")


def _tokens(text: str, stop_words: frozenset[str]) -> list[str]:
    return [
        token
        for token in _NON_WORD.split(text.lower())
        if len(token) >= MIN_TOKEN_LENGTH and token not in stop_words
    ]


def extract_concepts(content: str) -> list[str]:
    """Return up to 10 salient lowercase tokens from *content*.

    Duplicates are kept. Returns an empty list when nothing qualifies.
    """
    return _tokens(content, STOP_WORDS)[:MAX_CONCEPTS]


def extract_keywords(query: str) -> list[str]:
    """Return up to 5 search keywords from a user query.

    Like :func:`extract_concepts` but also drops question words, since
    they carry no topic signal for the cross-conversation search.
    """
    return _tokens(query, STOP_WORDS | QUESTION_WORDS)[:MAX_KEYWORDS]

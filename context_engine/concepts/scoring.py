"""Pure relevance arithmetic shared by the concept memory and the store."""

from collections.abc import Mapping, Sequence

NEW_CONVERSATION_RELEVANCE = 1.0
UNKNOWN_CONCEPT_RELEVANCE = 0.5


def mean_relevance(concepts: Sequence[str], known: Mapping[str, float]) -> float:
    """Score *concepts* against a conversation's stored concept scores.

    A conversation with no stored concepts, or a message with no concepts,
    scores 1.0. Otherwise each concept contributes its stored score, or 0.5
    if the conversation has never seen it, and the result is the mean.
    """
    if not known or not concepts:
        return NEW_CONVERSATION_RELEVANCE
    scores = [known.get(concept, UNKNOWN_CONCEPT_RELEVANCE) for concept in concepts]
    return sum(scores) / len(scores)


def weighted_relevance(old_score: float, old_count: int, relevance: float) -> float:
    """Fold one new relevance signal into an accumulated score.

    The previous score is weighted by its usage count. Only the current
    accumulated state is consulted, so the result depends on the order in
    which signals arrive.
    """
    return (old_score * old_count + relevance) / (old_count + 1)

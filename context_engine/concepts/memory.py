"""Per-conversation concept memory: relevance scoring and incremental updates."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from context_engine.concepts.extractor import extract_concepts
from context_engine.concepts.scoring import NEW_CONVERSATION_RELEVANCE, mean_relevance

if TYPE_CHECKING:
    from collections.abc import Sequence

    from context_engine.store import MessageStore

logger = logging.getLogger(__name__)


class ConceptMemory:
    """Scores messages against a conversation's concepts and records them.

    Wraps a :class:`~context_engine.store.MessageStore`; holds no state of
    its own, so one instance can serve any number of concurrent requests.
    """

    def __init__(self, store: MessageStore) -> None:
        self._store = store

    async def score_relevance(self, conversation_id: int, concepts: Sequence[str]) -> float:
        """How well *concepts* match what the conversation has discussed so far."""
        if not concepts:
            return NEW_CONVERSATION_RELEVANCE
        entries = await self._store.get_concept_memory(conversation_id)
        known = {e.key_concept: e.relevance_score for e in entries}
        return mean_relevance(concepts, known)

    async def update_memory(
        self, conversation_id: int, concepts: Sequence[str], relevance: float
    ) -> None:
        """Fold *relevance* into each concept's accumulated score.

        Each concept is its own transaction; repeated concepts are applied
        once per occurrence.
        """
        for concept in concepts:
            entry = await self._store.apply_relevance(conversation_id, concept, relevance)
            logger.debug(
                "Concept %r in conversation %s: score=%.3f uses=%d",
                concept,
                conversation_id,
                entry.relevance_score,
                entry.usage_count,
            )

    async def observe(self, conversation_id: int, content: str) -> tuple[float, list[str]]:
        """Extract, score and record the concepts of one message.

        Returns the message's relevance and the concepts it contributed.
        """
        concepts = extract_concepts(content)
        relevance = await self.score_relevance(conversation_id, concepts)
        await self.update_memory(conversation_id, concepts, relevance)
        return relevance, concepts

"""Context fusion: recent messages, concept memory and web results in one block.

``ContextEngine.build_context`` is the error boundary of the package. Every
source is fetched under its own handler; a failing source is logged and
contributes nothing, and the call always returns a ``ContextResult``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, TypeVar

from context_engine.classifier import needs_recent_info
from context_engine.concepts.extractor import extract_concepts, extract_keywords
from context_engine.concepts.memory import ConceptMemory
from context_engine.config import settings
from context_engine.models import ContextBundle, ContextResult
from context_engine.prompt import (
    USAGE_INSTRUCTIONS,
    combine_sections,
    format_database_context,
    format_web_section,
)
from context_engine.web.formatting import format_results

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from context_engine.models import Message, RelatedMessage
    from context_engine.store import MessageStore
    from context_engine.web.retriever import WebRetriever

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _guarded(awaitable: Awaitable[T], default: T, what: str) -> T:
    """Await *awaitable*; on any failure log it and return *default*."""
    try:
        return await awaitable
    except Exception:
        logger.exception("Context retrieval failed: %s", what)
        return default


class ContextEngine:
    """Builds the retrieved-context preamble for one generation request."""

    def __init__(
        self,
        store: MessageStore,
        retriever: WebRetriever | None = None,
        *,
        memory: ConceptMemory | None = None,
        web_result_count: int | None = None,
        recent_message_limit: int | None = None,
        top_concept_limit: int | None = None,
        related_message_limit: int | None = None,
    ) -> None:
        self._store = store
        self._retriever = retriever
        self._memory = memory or ConceptMemory(store)
        self._web_result_count = (
            settings.web_result_count if web_result_count is None else web_result_count
        )
        self._recent_limit = (
            settings.recent_message_limit if recent_message_limit is None else recent_message_limit
        )
        self._concept_limit = (
            settings.top_concept_limit if top_concept_limit is None else top_concept_limit
        )
        self._related_limit = (
            settings.related_message_limit
            if related_message_limit is None
            else related_message_limit
        )

    @property
    def memory(self) -> ConceptMemory:
        return self._memory

    # -- Ingestion -------------------------------------------------------------

    async def record_message(
        self, conversation_id: int, user_id: int, role: str, content: str
    ) -> Message:
        """Store a message scored against, and then folded into, concept memory.

        The message and its concept updates are written in one transaction.
        """
        concepts = extract_concepts(content)
        relevance = await self._memory.score_relevance(conversation_id, concepts)
        message = await self._store.record_message(
            conversation_id, user_id, role, content, concepts, relevance
        )
        logger.info(
            "Recorded %s message %s in conversation %s (relevance %.2f, %d concepts)",
            role,
            message.id,
            conversation_id,
            relevance,
            len(concepts),
        )
        return message

    # -- Retrieval ---------------------------------------------------------------

    async def get_conversation_context(self, conversation_id: int) -> ContextBundle:
        """Recent messages and top concepts of a conversation."""
        recent, concepts = await asyncio.gather(
            _guarded(
                self._store.list_recent_messages(conversation_id, self._recent_limit),
                [],
                "recent messages",
            ),
            _guarded(
                self._store.get_top_concepts(conversation_id, self._concept_limit),
                [],
                "top concepts",
            ),
        )
        return ContextBundle(recent_messages=recent, top_concepts=concepts)

    async def build_context(
        self, query: str, user_id: int, conversation_id: int | None
    ) -> ContextResult:
        """Assemble the context block for *query*. Never raises."""
        try:
            return await self._build_context(query, user_id, conversation_id)
        except Exception:
            logger.exception("Context assembly failed; returning empty context")
            return ContextResult()

    async def _build_context(
        self, query: str, user_id: int, conversation_id: int | None
    ) -> ContextResult:
        logger.info("Retrieving context for query: %r", query)
        use_web = self._retriever is not None and needs_recent_info(query)

        web_text, bundle, related = await asyncio.gather(
            _guarded(self._web_context(query), "", "web search") if use_web else _empty(),
            self._conversation_bundle(conversation_id),
            _guarded(
                self._related_messages(query, user_id, conversation_id),
                [],
                "related messages",
            ),
        )

        bundle.related_messages = related
        bundle.web_section = format_web_section(web_text)
        bundle.usage_instructions = USAGE_INSTRUCTIONS if bundle.web_section else ""

        database_context = format_database_context(related, bundle.top_concepts)
        context = combine_sections(
            bundle.web_section, bundle.usage_instructions, database_context
        )
        return ContextResult(context=context, has_web_results=bool(web_text), bundle=bundle)

    async def _conversation_bundle(self, conversation_id: int | None) -> ContextBundle:
        if conversation_id is None:
            return ContextBundle()
        return await self.get_conversation_context(conversation_id)

    async def _web_context(self, query: str) -> str:
        results = await self._retriever.search(query, self._web_result_count)
        if not results:
            logger.info("Web search returned no results for %r", query)
            return ""
        return format_results(results)

    async def _related_messages(
        self, query: str, user_id: int, conversation_id: int | None
    ) -> list[RelatedMessage]:
        keywords = extract_keywords(query)
        return await self._store.search_assistant_messages_by_keyword(
            user_id, conversation_id, keywords, self._related_limit
        )


async def _empty() -> str:
    return ""

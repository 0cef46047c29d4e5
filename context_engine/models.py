"""Data models for messages, concept memory, and retrieved context."""

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, Field


class Message(BaseModel):
    """A single stored conversation message."""

    id: int
    conversation_id: int
    user_id: int
    role: Literal["user", "assistant"]
    content: str
    context_relevance: float = Field(default=0.0, ge=0.0)
    created_at: str = ""

    @classmethod
    def from_row(cls, row: tuple) -> "Message":
        """Deserialize from a ``messages`` row tuple."""
        return cls(
            id=row[0],
            conversation_id=row[1],
            user_id=row[2],
            role=row[3],
            content=row[4] or "",
            context_relevance=row[5] or 0.0,
            created_at=row[6] or "",
        )


class ConceptMemoryEntry(BaseModel):
    """Accumulated relevance statistics for one concept in one conversation."""

    conversation_id: int
    key_concept: str
    relevance_score: float
    usage_count: int = Field(default=1, ge=1)
    last_used: str = ""

    @classmethod
    def from_row(cls, row: tuple) -> "ConceptMemoryEntry":
        """Deserialize from a ``context_memory`` row tuple."""
        return cls(
            conversation_id=row[0],
            key_concept=row[1],
            relevance_score=row[2],
            usage_count=row[3],
            last_used=row[4] or "",
        )


class RelatedMessage(BaseModel):
    """An assistant message found in another of the user's conversations."""

    content: str
    conversation_title: str = ""
    created_at: str = ""


class SearchResult(BaseModel):
    """A web search hit, optionally enriched with page paragraphs."""

    title: str
    link: str
    snippet: str = ""
    published_date: str | None = None
    source: str = ""
    additional_content: str | None = None


@dataclass
class ContextBundle:
    """Everything gathered for one generation request. Never persisted."""

    recent_messages: list[Message] = field(default_factory=list)
    top_concepts: list[ConceptMemoryEntry] = field(default_factory=list)
    related_messages: list[RelatedMessage] = field(default_factory=list)
    web_section: str = ""
    usage_instructions: str = ""

    def to_api_messages(self) -> list[dict[str, str]]:
        """Recent messages as chat turns, oldest first."""
        return [
            {"role": m.role, "content": m.content}
            for m in reversed(self.recent_messages)
        ]


@dataclass
class ContextResult:
    """Output of ``ContextEngine.build_context``."""

    context: str = ""
    has_web_results: bool = False
    bundle: ContextBundle = field(default_factory=ContextBundle)

"""Context-retrieval engine for a chat assistant.

Decides what a reply should be grounded on: recent turns, per-conversation
concept memory, the user's related past answers and, for time-sensitive
questions, live web results.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from context_engine.config import settings
from context_engine.engine import ContextEngine
from context_engine.models import ContextBundle, ContextResult
from context_engine.store import MessageStore, SQLiteMessageStore
from context_engine.web import WebRetriever, make_provider

if TYPE_CHECKING:
    from pathlib import Path

__all__ = [
    "ContextBundle",
    "ContextEngine",
    "ContextResult",
    "MessageStore",
    "SQLiteMessageStore",
    "configure_logging",
    "create_engine",
]


def configure_logging(level: str | None = None) -> None:
    """Apply the standard log format. Call once from the host application."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, (level or settings.log_level).upper()),
    )


def create_engine(db_path: Path | None = None, *, provider: str | None = None) -> ContextEngine:
    """Wire a store, a web retriever and the engine from settings."""
    store = SQLiteMessageStore(db_path=db_path)
    retriever = WebRetriever(make_provider(provider))
    return ContextEngine(store, retriever)

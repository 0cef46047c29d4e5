"""Message store — conversations, messages, and concept memory via libsql.

``MessageStore`` is the interface the engine consumes; ``SQLiteMessageStore``
is the reference implementation over a local SQLite file or hosted Turso.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from context_engine.concepts.scoring import weighted_relevance
from context_engine.db import get_connection, transaction
from context_engine.errors import StoreUnavailable
from context_engine.models import ConceptMemoryEntry, Message, RelatedMessage

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence
    from pathlib import Path

    from context_engine.db import _AsyncConnection

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS conversations (
        id              INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id         INTEGER NOT NULL,
        title           TEXT NOT NULL DEFAULT 'New Chat',
        last_message_at TEXT,
        created_at      TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS messages (
        id                INTEGER PRIMARY KEY AUTOINCREMENT,
        conversation_id   INTEGER NOT NULL,
        user_id           INTEGER NOT NULL,
        role              TEXT NOT NULL,
        content           TEXT NOT NULL,
        context_relevance REAL NOT NULL DEFAULT 0.0,
        created_at        TEXT NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_messages_conversation
        ON messages (conversation_id, created_at)
    """,
    """
    CREATE TABLE IF NOT EXISTS context_memory (
        conversation_id INTEGER NOT NULL,
        key_concept     TEXT NOT NULL,
        relevance_score REAL NOT NULL,
        usage_count     INTEGER NOT NULL DEFAULT 1,
        last_used       TEXT NOT NULL,
        created_at      TEXT NOT NULL,
        PRIMARY KEY (conversation_id, key_concept)
    )
    """,
)

_MESSAGE_COLUMNS = "id, conversation_id, user_id, role, content, context_relevance, created_at"
_MEMORY_COLUMNS = "conversation_id, key_concept, relevance_score, usage_count, last_used"


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _escape_like(text: str) -> str:
    """Make *text* match literally inside a LIKE pattern (ESCAPE '\\')."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@runtime_checkable
class MessageStore(Protocol):
    """Read/write surface the engine needs from persistent storage."""

    async def add_message(
        self,
        conversation_id: int,
        user_id: int,
        role: str,
        content: str,
        context_relevance: float = 0.0,
    ) -> Message:
        """Persist one message with its relevance."""
        ...

    async def record_message(
        self,
        conversation_id: int,
        user_id: int,
        role: str,
        content: str,
        concepts: Sequence[str],
        context_relevance: float,
    ) -> Message:
        """Persist a message and its concept updates in one transaction."""
        ...

    async def list_recent_messages(self, conversation_id: int, limit: int) -> list[Message]:
        """Most recent messages of a conversation, newest first."""
        ...

    async def search_assistant_messages_by_keyword(
        self,
        user_id: int,
        exclude_conversation_id: int | None,
        keywords: Sequence[str],
        limit: int,
    ) -> list[RelatedMessage]:
        """Assistant messages from the user's other conversations containing *keywords*."""
        ...

    async def get_concept_memory(self, conversation_id: int) -> list[ConceptMemoryEntry]:
        """All concept memory rows of a conversation."""
        ...

    async def get_top_concepts(
        self, conversation_id: int, limit: int
    ) -> list[ConceptMemoryEntry]:
        """Best concepts by (relevance_score desc, usage_count desc)."""
        ...

    async def get_concept_memory_by_key(
        self, conversation_id: int, concept: str
    ) -> ConceptMemoryEntry | None:
        """One concept memory row, or None."""
        ...

    async def upsert_concept_memory(self, entry: ConceptMemoryEntry) -> None:
        """Insert or overwrite one concept memory row."""
        ...

    async def apply_relevance(
        self, conversation_id: int, concept: str, relevance: float
    ) -> ConceptMemoryEntry:
        """Atomically fold *relevance* into the concept's accumulated score."""
        ...


class SQLiteMessageStore:
    """Persists conversations, messages and concept memory in SQLite / Turso.

    Pass an explicit *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    Every operation opens and closes its own connection.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path
        self._initialised = False

    # -- Internal helpers ------------------------------------------------------

    async def _connect(self):  # noqa: ANN202
        db = await get_connection(local_path_override=self._db_path)
        if not self._initialised:
            for statement in _SCHEMA:
                await db.execute(statement)
            await db.commit()
            self._initialised = True
        return db

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncIterator[_AsyncConnection]:
        """Yield a connection; translate driver failures into StoreUnavailable."""
        try:
            db = await self._connect()
        except Exception as exc:
            msg = f"Message store unavailable ({action})"
            raise StoreUnavailable(msg) from exc
        try:
            yield db
        except StoreUnavailable:
            raise
        except Exception as exc:
            msg = f"Message store {action} failed"
            raise StoreUnavailable(msg) from exc
        finally:
            await db.close()

    @asynccontextmanager
    async def _write(self, action: str) -> AsyncIterator[_AsyncConnection]:
        """Yield a connection inside a write transaction."""
        if not self._initialised:
            async with self._session(action):
                pass
        try:
            async with transaction(self._db_path) as db:
                yield db
        except StoreUnavailable:
            raise
        except Exception as exc:
            msg = f"Message store {action} failed"
            raise StoreUnavailable(msg) from exc

    @staticmethod
    async def _select_entry(
        db: _AsyncConnection, conversation_id: int, concept: str
    ) -> ConceptMemoryEntry | None:
        cursor = await db.execute(
            f"SELECT {_MEMORY_COLUMNS} FROM context_memory "
            "WHERE conversation_id = ? AND key_concept = ?",
            (conversation_id, concept),
        )
        row = await cursor.fetchone()
        return ConceptMemoryEntry.from_row(row) if row else None

    @staticmethod
    async def _write_entry(db: _AsyncConnection, entry: ConceptMemoryEntry) -> None:
        now = _now()
        await db.execute(
            """
            INSERT INTO context_memory
                (conversation_id, key_concept, relevance_score, usage_count,
                 last_used, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (conversation_id, key_concept) DO UPDATE SET
                relevance_score = excluded.relevance_score,
                usage_count = excluded.usage_count,
                last_used = excluded.last_used
            """,
            (
                entry.conversation_id,
                entry.key_concept,
                entry.relevance_score,
                entry.usage_count,
                entry.last_used or now,
                now,
            ),
        )

    # -- Conversations -----------------------------------------------------------

    async def create_conversation(self, user_id: int, title: str = "New Chat") -> int:
        """Insert a conversation. Returns its ID."""
        async with self._write("create_conversation") as db:
            await db.execute(
                "INSERT INTO conversations (user_id, title, created_at) VALUES (?, ?, ?)",
                (user_id, title, _now()),
            )
            cursor = await db.execute("SELECT last_insert_rowid()")
            row = await cursor.fetchone()
        logger.info("Created conversation %s for user %s", row[0], user_id)
        return row[0]

    async def touch_conversation(self, conversation_id: int) -> None:
        """Set last_message_at to now."""
        async with self._session("touch_conversation") as db:
            await db.execute(
                "UPDATE conversations SET last_message_at = ? WHERE id = ?",
                (_now(), conversation_id),
            )
            await db.commit()

    async def delete_conversation(self, conversation_id: int) -> bool:
        """Delete a conversation with its messages and concept memory.

        Returns True if the conversation existed.
        """
        async with self._write("delete_conversation") as db:
            await db.execute(
                "DELETE FROM context_memory WHERE conversation_id = ?", (conversation_id,)
            )
            await db.execute(
                "DELETE FROM messages WHERE conversation_id = ?", (conversation_id,)
            )
            cursor = await db.execute(
                "DELETE FROM conversations WHERE id = ?", (conversation_id,)
            )
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted conversation %s", conversation_id)
        return deleted

    # -- Messages ----------------------------------------------------------------

    async def add_message(
        self,
        conversation_id: int,
        user_id: int,
        role: str,
        content: str,
        context_relevance: float = 0.0,
    ) -> Message:
        """Insert a message and bump the conversation's last_message_at."""
        async with self._write("add_message") as db:
            return await self._insert_message(
                db, conversation_id, user_id, role, content, context_relevance
            )

    async def record_message(
        self,
        conversation_id: int,
        user_id: int,
        role: str,
        content: str,
        concepts: Sequence[str],
        context_relevance: float,
    ) -> Message:
        """Insert a message and fold its relevance into each concept.

        The insert, every concept update and the last_message_at bump commit
        together or not at all.
        """
        async with self._write("record_message") as db:
            message = await self._insert_message(
                db, conversation_id, user_id, role, content, context_relevance
            )
            for concept in concepts:
                entry = await self._fold_relevance(
                    db, conversation_id, concept, context_relevance
                )
                logger.debug(
                    "Concept %r in conversation %s: score=%.3f uses=%d",
                    concept,
                    conversation_id,
                    entry.relevance_score,
                    entry.usage_count,
                )
        return message

    @staticmethod
    async def _insert_message(
        db: _AsyncConnection,
        conversation_id: int,
        user_id: int,
        role: str,
        content: str,
        context_relevance: float,
    ) -> Message:
        created_at = _now()
        await db.execute(
            """
            INSERT INTO messages
                (conversation_id, user_id, role, content, context_relevance, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (conversation_id, user_id, role, content, context_relevance, created_at),
        )
        cursor = await db.execute("SELECT last_insert_rowid()")
        row = await cursor.fetchone()
        await db.execute(
            "UPDATE conversations SET last_message_at = ? WHERE id = ?",
            (created_at, conversation_id),
        )
        return Message(
            id=row[0],
            conversation_id=conversation_id,
            user_id=user_id,
            role=role,
            content=content,
            context_relevance=context_relevance,
            created_at=created_at,
        )

    async def list_recent_messages(self, conversation_id: int, limit: int = 5) -> list[Message]:
        """Return the last *limit* messages of a conversation, newest first."""
        async with self._session("list_recent_messages") as db:
            cursor = await db.execute(
                f"""
                SELECT {_MESSAGE_COLUMNS} FROM messages
                WHERE conversation_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (conversation_id, limit),
            )
            rows = await cursor.fetchall()
        return [Message.from_row(row) for row in rows]

    async def search_assistant_messages_by_keyword(
        self,
        user_id: int,
        exclude_conversation_id: int | None,
        keywords: Sequence[str],
        limit: int = 3,
    ) -> list[RelatedMessage]:
        """Find assistant replies in the user's other conversations.

        Matches messages whose content contains every keyword in the given
        order (case-insensitive LIKE ``%k1%k2%``). No keywords, no matches.
        """
        if not keywords:
            return []
        pattern = "%" + "%".join(_escape_like(k) for k in keywords) + "%"
        async with self._session("search_assistant_messages_by_keyword") as db:
            cursor = await db.execute(
                """
                SELECT m.content, c.title, m.created_at
                FROM messages m
                JOIN conversations c ON m.conversation_id = c.id
                WHERE m.user_id = ?
                  AND m.role = 'assistant'
                  AND m.conversation_id != ?
                  AND m.content LIKE ? ESCAPE '\\'
                ORDER BY m.created_at DESC, m.id DESC
                LIMIT ?
                """,
                (user_id, exclude_conversation_id or 0, pattern, limit),
            )
            rows = await cursor.fetchall()
        return [
            RelatedMessage(content=row[0], conversation_title=row[1] or "", created_at=row[2] or "")
            for row in rows
        ]

    # -- Concept memory ------------------------------------------------------------

    async def get_concept_memory(self, conversation_id: int) -> list[ConceptMemoryEntry]:
        """Return every concept memory row for a conversation."""
        async with self._session("get_concept_memory") as db:
            cursor = await db.execute(
                f"SELECT {_MEMORY_COLUMNS} FROM context_memory WHERE conversation_id = ?",
                (conversation_id,),
            )
            rows = await cursor.fetchall()
        return [ConceptMemoryEntry.from_row(row) for row in rows]

    async def get_top_concepts(
        self, conversation_id: int, limit: int = 10
    ) -> list[ConceptMemoryEntry]:
        """Return the best concepts by relevance, then usage."""
        async with self._session("get_top_concepts") as db:
            cursor = await db.execute(
                f"""
                SELECT {_MEMORY_COLUMNS} FROM context_memory
                WHERE conversation_id = ?
                ORDER BY relevance_score DESC, usage_count DESC
                LIMIT ?
                """,
                (conversation_id, limit),
            )
            rows = await cursor.fetchall()
        return [ConceptMemoryEntry.from_row(row) for row in rows]

    async def get_concept_memory_by_key(
        self, conversation_id: int, concept: str
    ) -> ConceptMemoryEntry | None:
        """Fetch one concept row, or None if the conversation never saw it."""
        async with self._session("get_concept_memory_by_key") as db:
            return await self._select_entry(db, conversation_id, concept)

    async def upsert_concept_memory(self, entry: ConceptMemoryEntry) -> None:
        """Insert or overwrite a concept row (created_at is kept on update)."""
        async with self._write("upsert_concept_memory") as db:
            await self._write_entry(db, entry)

    async def apply_relevance(
        self, conversation_id: int, concept: str, relevance: float
    ) -> ConceptMemoryEntry:
        """Fold one relevance signal into a concept's row.

        The read and the write share one ``BEGIN IMMEDIATE`` transaction, so
        concurrent signals for the same row are applied one after another.
        """
        async with self._write("apply_relevance") as db:
            return await self._fold_relevance(db, conversation_id, concept, relevance)

    @classmethod
    async def _fold_relevance(
        cls, db: _AsyncConnection, conversation_id: int, concept: str, relevance: float
    ) -> ConceptMemoryEntry:
        now = _now()
        existing = await cls._select_entry(db, conversation_id, concept)
        if existing:
            entry = ConceptMemoryEntry(
                conversation_id=conversation_id,
                key_concept=concept,
                relevance_score=weighted_relevance(
                    existing.relevance_score, existing.usage_count, relevance
                ),
                usage_count=existing.usage_count + 1,
                last_used=now,
            )
        else:
            entry = ConceptMemoryEntry(
                conversation_id=conversation_id,
                key_concept=concept,
                relevance_score=relevance,
                usage_count=1,
                last_used=now,
            )
        await cls._write_entry(db, entry)
        return entry

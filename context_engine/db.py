"""Async database connection abstraction over libsql.

Provides a thin async wrapper around the synchronous ``libsql`` driver using
``asyncio.to_thread()``.  Connection target is determined by settings:

- **Production**: ``TURSO_DATABASE_URL`` + ``TURSO_AUTH_TOKEN`` → remote Turso
- **Dev/test**: no Turso env vars → local SQLite file via ``database_path``

Multi-statement writes go through :func:`transaction`, which opens a
dedicated autocommit connection, issues ``BEGIN IMMEDIATE`` and guarantees a
``ROLLBACK`` on any exception path.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import libsql

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

from context_engine.config import settings

_DEFAULT_ISOLATION = "DEFERRED"


class _AsyncCursor:
    """Thin async wrapper around a synchronous libsql cursor."""

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor

    async def fetchone(self) -> tuple | None:
        return await asyncio.to_thread(self._cursor.fetchone)

    async def fetchall(self) -> list[tuple]:
        return await asyncio.to_thread(self._cursor.fetchall)

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount


class _AsyncConnection:
    """Thin async wrapper around a synchronous libsql connection."""

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    async def execute(self, sql: str, params: tuple = ()) -> _AsyncCursor:
        cursor = await asyncio.to_thread(self._conn.execute, sql, params)
        return _AsyncCursor(cursor)

    async def commit(self) -> None:
        await asyncio.to_thread(self._conn.commit)

    async def close(self) -> None:
        await asyncio.to_thread(self._conn.close)


def _open_local(path: str, isolation_level: str | None = _DEFAULT_ISOLATION) -> Any:
    """Open a local libsql connection with WAL mode and busy timeout."""
    conn = libsql.connect(path, isolation_level=isolation_level)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    return conn


async def get_connection(
    local_path_override: Path | None = None,
    *,
    autocommit: bool = False,
) -> _AsyncConnection:
    """Return an async-wrapped libsql connection.

    If *local_path_override* is given (test isolation), it takes priority.
    Otherwise, ``TURSO_DATABASE_URL`` triggers a remote connection, and
    ``database_path`` falls back to a local file.

    With *autocommit* the driver never opens implicit transactions; the
    caller issues ``BEGIN``/``COMMIT`` itself.
    """
    isolation_level = None if autocommit else _DEFAULT_ISOLATION

    if local_path_override:
        local_path_override.parent.mkdir(parents=True, exist_ok=True)
        conn = await asyncio.to_thread(
            _open_local, str(local_path_override), isolation_level
        )
        return _AsyncConnection(conn)

    if settings.turso_database_url:
        conn = await asyncio.to_thread(
            libsql.connect,
            database=settings.turso_database_url,
            auth_token=settings.turso_auth_token,
            isolation_level=isolation_level,
        )
        return _AsyncConnection(conn)

    # Local file fallback
    settings.database_path.parent.mkdir(parents=True, exist_ok=True)
    conn = await asyncio.to_thread(
        _open_local, str(settings.database_path), isolation_level
    )
    return _AsyncConnection(conn)


@asynccontextmanager
async def transaction(
    local_path_override: Path | None = None,
) -> AsyncIterator[_AsyncConnection]:
    """Run the enclosed statements as one write transaction.

    ``BEGIN IMMEDIATE`` takes the database write lock up front, so a
    read-modify-write inside the block cannot interleave with another
    writer.  Commits on normal exit, rolls back on any exception.
    """
    conn = await get_connection(local_path_override, autocommit=True)
    try:
        await conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except BaseException:
            await conn.execute("ROLLBACK")
            raise
        await conn.execute("COMMIT")
    finally:
        await conn.close()

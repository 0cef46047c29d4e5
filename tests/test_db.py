"""Tests for async database connection abstraction."""

from pathlib import Path

import pytest

from context_engine.db import _AsyncConnection, get_connection, transaction

pytestmark = pytest.mark.usefixtures("_no_turso")


class TestGetConnection:
    async def test_returns_async_connection(self, tmp_path: Path):
        conn = await get_connection(local_path_override=tmp_path / "test.db")
        assert isinstance(conn, _AsyncConnection)
        await conn.close()

    async def test_creates_parent_dirs(self, tmp_path: Path):
        db_path = tmp_path / "nested" / "dir" / "test.db"
        conn = await get_connection(local_path_override=db_path)
        assert db_path.parent.exists()
        await conn.close()


class TestAsyncConnection:
    async def test_execute_and_fetchall(self, tmp_path: Path):
        conn = await get_connection(local_path_override=tmp_path / "test.db")
        await conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
        await conn.execute("INSERT INTO t (name) VALUES (?)", ("alice",))
        await conn.commit()

        cursor = await conn.execute("SELECT name FROM t")
        rows = await cursor.fetchall()
        assert rows == [("alice",)]
        await conn.close()

    async def test_fetchone_returns_none_when_empty(self, tmp_path: Path):
        conn = await get_connection(local_path_override=tmp_path / "test.db")
        await conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY)")

        cursor = await conn.execute("SELECT * FROM t WHERE id = 999")
        row = await cursor.fetchone()
        assert row is None
        await conn.close()

    async def test_rowcount(self, tmp_path: Path):
        conn = await get_connection(local_path_override=tmp_path / "test.db")
        await conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
        await conn.execute("INSERT INTO t (name) VALUES (?)", ("a",))
        await conn.execute("INSERT INTO t (name) VALUES (?)", ("b",))
        await conn.commit()

        cursor = await conn.execute("DELETE FROM t")
        assert cursor.rowcount == 2
        await conn.close()


class TestTransaction:
    async def _make_table(self, db_path: Path) -> None:
        conn = await get_connection(local_path_override=db_path)
        await conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
        await conn.commit()
        await conn.close()

    async def _names(self, db_path: Path) -> list[str]:
        conn = await get_connection(local_path_override=db_path)
        cursor = await conn.execute("SELECT name FROM t ORDER BY id")
        rows = await cursor.fetchall()
        await conn.close()
        return [row[0] for row in rows]

    async def test_commits_on_success(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        await self._make_table(db_path)

        async with transaction(db_path) as conn:
            await conn.execute("INSERT INTO t (name) VALUES (?)", ("kept",))

        assert await self._names(db_path) == ["kept"]

    async def test_rolls_back_on_exception(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        await self._make_table(db_path)

        with pytest.raises(RuntimeError):
            async with transaction(db_path) as conn:
                await conn.execute("INSERT INTO t (name) VALUES (?)", ("lost",))
                raise RuntimeError("abort")

        assert await self._names(db_path) == []

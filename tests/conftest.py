"""Shared test fixtures."""

from pathlib import Path

import pytest

from context_engine.store import SQLiteMessageStore


@pytest.fixture(autouse=False)
def _no_turso(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure tests use local file, not remote Turso."""
    monkeypatch.setattr("context_engine.config.settings.turso_database_url", "")


@pytest.fixture
async def store(tmp_path: Path, _no_turso: None) -> SQLiteMessageStore:
    """Create a SQLiteMessageStore backed by a temp database."""
    return SQLiteMessageStore(db_path=tmp_path / "test.db")

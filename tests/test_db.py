"""Tests for the libsql connection wrapper and SqlStore base."""

from datetime import datetime
from pathlib import Path

import pytest

from src.db import SqlStore, _AsyncConnection, get_connection, utc_now

pytestmark = pytest.mark.usefixtures("_no_turso")


class _NotesStore(SqlStore):
    _SCHEMA = ("CREATE TABLE IF NOT EXISTS notes (id INTEGER PRIMARY KEY, body TEXT)",)
    _instance = None

    async def _seed(self, db: _AsyncConnection) -> None:
        await db.execute("INSERT OR IGNORE INTO notes (id, body) VALUES (1, 'seeded')")

    async def bodies(self) -> list[str]:
        db = await self._connect()
        try:
            cursor = await db.execute("SELECT body FROM notes ORDER BY id")
            return [row[0] for row in await cursor.fetchall()]
        finally:
            await db.close()


class _OtherStore(SqlStore):
    _instance = None


def test_utc_now_is_aware_iso() -> None:
    parsed = datetime.fromisoformat(utc_now())
    assert parsed.utcoffset() is not None
    assert parsed.utcoffset().total_seconds() == 0


class TestGetConnection:
    async def test_returns_async_connection(self, tmp_path: Path):
        conn = await get_connection(local_path_override=tmp_path / "companion.db")
        assert isinstance(conn, _AsyncConnection)
        await conn.close()

    async def test_creates_parent_dirs(self, tmp_path: Path):
        db_path = tmp_path / "data" / "nested" / "companion.db"
        conn = await get_connection(local_path_override=db_path)
        assert db_path.parent.exists()
        await conn.close()


class TestAsyncConnection:
    async def test_execute_fetch_and_rowcount(self, tmp_path: Path):
        conn = await get_connection(local_path_override=tmp_path / "companion.db")
        await conn.execute("CREATE TABLE kv (k TEXT PRIMARY KEY, v TEXT)")
        await conn.execute("INSERT INTO kv (k, v) VALUES (?, ?)", ("mood", "Happy"))
        await conn.execute("INSERT INTO kv (k, v) VALUES (?, ?)", ("energy", "80"))
        await conn.commit()

        cursor = await conn.execute("SELECT v FROM kv WHERE k = ?", ("mood",))
        assert await cursor.fetchone() == ("Happy",)

        cursor = await conn.execute("SELECT k FROM kv ORDER BY k")
        assert await cursor.fetchall() == [("energy",), ("mood",)]

        cursor = await conn.execute("DELETE FROM kv")
        assert cursor.rowcount == 2
        await conn.close()

    async def test_fetchone_returns_none_when_empty(self, tmp_path: Path):
        conn = await get_connection(local_path_override=tmp_path / "companion.db")
        await conn.execute("CREATE TABLE t (id INTEGER PRIMARY KEY)")

        cursor = await conn.execute("SELECT * FROM t WHERE id = 999")
        assert await cursor.fetchone() is None
        await conn.close()


class TestSqlStore:
    async def test_schema_and_seed_on_first_connect(self, tmp_path: Path):
        store = _NotesStore(db_path=tmp_path / "companion.db")
        assert await store.bodies() == ["seeded"]

    async def test_seed_runs_once_per_database(self, tmp_path: Path):
        path = tmp_path / "companion.db"
        await _NotesStore(db_path=path).bodies()
        assert await _NotesStore(db_path=path).bodies() == ["seeded"]

    def test_singletons_are_per_subclass(self):
        _NotesStore._reset()
        _OtherStore._reset()
        try:
            notes = _NotesStore.get()
            other = _OtherStore.get()
            assert notes is _NotesStore.get()
            assert isinstance(other, _OtherStore)
            assert other is not notes
        finally:
            _NotesStore._reset()
            _OtherStore._reset()

"""MemoryStore: CRUD for extracted and user-supplied memories via libsql."""

from __future__ import annotations

import logging
import uuid

from src.config import settings
from src.db import SqlStore, utc_now
from src.errors import ValidationError
from src.memory.models import Memory, clamp_importance, normalize_category
from src.memory.retrieval import is_duplicate

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS memories (
    id         TEXT PRIMARY KEY,
    content    TEXT NOT NULL,
    category   TEXT NOT NULL DEFAULT 'general',
    importance INTEGER NOT NULL DEFAULT 5,
    created_at TEXT NOT NULL
)
"""

_COLUMNS = "id, content, category, importance, created_at"


def _clean_content(content: object) -> str:
    if not isinstance(content, str) or not content.strip():
        msg = "Memory content must be non-empty text"
        raise ValidationError(msg)
    return content.strip()


class MemoryStore(SqlStore):
    """Persists memories in SQLite / Turso.

    Singleton accessed via ``MemoryStore.get()``.
    """

    _SCHEMA = (_CREATE_TABLE,)
    _instance = None

    # -- Write ---------------------------------------------------------------

    async def insert(
        self,
        content: str,
        category: str | None = None,
        importance: int | None = None,
    ) -> str:
        """Store a memory and return its ID.

        Category and importance are normalised rather than rejected; empty
        content raises :class:`ValidationError`.
        """
        text = _clean_content(content)
        memory_id = uuid.uuid4().hex
        row = (memory_id, text, normalize_category(category), clamp_importance(importance), utc_now())
        db = await self._connect()
        try:
            await db.execute(
                f"INSERT INTO memories ({_COLUMNS}) VALUES (?, ?, ?, ?, ?)",  # noqa: S608
                row,
            )
            await db.commit()
            logger.debug("Stored memory [%s/%d]: %s", row[2], row[3], text[:80])
            return memory_id
        finally:
            await db.close()

    async def add_unique(
        self,
        content: str,
        category: str | None = None,
        importance: int | None = None,
        threshold: float | None = None,
    ) -> str | None:
        """Insert unless a near-duplicate already exists. Returns the new ID or None."""
        text = _clean_content(content)
        existing = await self.list_all()
        limit = settings.duplicate_threshold if threshold is None else threshold
        if is_duplicate(existing, text, limit):
            logger.info("Skipped duplicate memory: %s", text[:80])
            return None
        return await self.insert(text, category, importance)

    async def update(self, memory_id: str, content: str) -> bool:
        """Replace a memory's content. Returns False if the ID is unknown."""
        text = _clean_content(content)
        db = await self._connect()
        try:
            cursor = await db.execute(
                "UPDATE memories SET content = ? WHERE id = ?", (text, memory_id)
            )
            await db.commit()
            updated = cursor.rowcount > 0
            if updated:
                logger.info("Updated memory: %s", memory_id)
            return updated
        finally:
            await db.close()

    async def delete(self, memory_id: str) -> bool:
        """Delete a memory by ID. Returns False if the ID is unknown."""
        db = await self._connect()
        try:
            cursor = await db.execute("DELETE FROM memories WHERE id = ?", (memory_id,))
            await db.commit()
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info("Deleted memory: %s", memory_id)
            return deleted
        finally:
            await db.close()

    # -- Read ----------------------------------------------------------------

    async def list_all(self) -> list[Memory]:
        """Return every memory, newest first."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM memories ORDER BY created_at DESC, rowid DESC"  # noqa: S608
            )
            rows = await cursor.fetchall()
            return [Memory.from_row(row) for row in rows]
        finally:
            await db.close()

    async def get_by_id(self, memory_id: str) -> Memory | None:
        """Fetch one memory, or None if not found."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM memories WHERE id = ?",  # noqa: S608
                (memory_id,),
            )
            row = await cursor.fetchone()
            return Memory.from_row(row) if row else None
        finally:
            await db.close()

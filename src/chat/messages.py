"""MessageStore: append-only conversation log via libsql."""

from __future__ import annotations

import logging
import uuid

from src.db import SqlStore, utc_now
from src.memory.models import Message

logger = logging.getLogger(__name__)

ROLES = ("user", "assistant")

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS messages (
    id        TEXT PRIMARY KEY,
    role      TEXT NOT NULL,
    content   TEXT NOT NULL,
    mood      TEXT,
    has_image INTEGER NOT NULL DEFAULT 0,
    image_url TEXT,
    timestamp TEXT NOT NULL
)
"""

_COLUMNS = "id, role, content, mood, has_image, image_url, timestamp"


class MessageStore(SqlStore):
    """Persists conversation messages in SQLite / Turso.

    Singleton accessed via ``MessageStore.get()``.
    """

    _SCHEMA = (_CREATE_TABLE,)
    _instance = None

    async def append(
        self,
        role: str,
        content: str,
        mood: str | None = None,
        has_image: bool = False,
        image_url: str | None = None,
    ) -> str:
        """Append a message and return its ID."""
        if role not in ROLES:
            msg = f"Unknown message role: {role}"
            raise ValueError(msg)
        message_id = uuid.uuid4().hex
        db = await self._connect()
        try:
            await db.execute(
                f"INSERT INTO messages ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",  # noqa: S608
                (message_id, role, content, mood, int(has_image), image_url, utc_now()),
            )
            await db.commit()
            return message_id
        finally:
            await db.close()

    async def recent(self, limit: int = 20) -> list[Message]:
        """Return the last *limit* messages, oldest first."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM messages "  # noqa: S608
                "ORDER BY timestamp DESC, rowid DESC LIMIT ?",
                (limit,),
            )
            rows = await cursor.fetchall()
            return [Message.from_row(row) for row in reversed(rows)]
        finally:
            await db.close()

    async def all(self) -> list[Message]:
        """Return the whole conversation, oldest first."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM messages ORDER BY timestamp ASC, rowid ASC"  # noqa: S608
            )
            rows = await cursor.fetchall()
            return [Message.from_row(row) for row in rows]
        finally:
            await db.close()

    async def images(self) -> list[Message]:
        """Messages that carry a photo, sent or received, oldest first."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM messages "  # noqa: S608
                "WHERE has_image = 1 AND image_url IS NOT NULL AND image_url != '' "
                "ORDER BY timestamp ASC, rowid ASC"
            )
            rows = await cursor.fetchall()
            return [Message.from_row(row) for row in rows]
        finally:
            await db.close()

    async def count(self) -> int:
        db = await self._connect()
        try:
            cursor = await db.execute("SELECT COUNT(*) FROM messages")
            row = await cursor.fetchone()
            return int(row[0]) if row else 0
        finally:
            await db.close()

    async def delete(self, message_id: str) -> bool:
        """Delete a message by ID. Returns False if the ID is unknown."""
        db = await self._connect()
        try:
            cursor = await db.execute("DELETE FROM messages WHERE id = ?", (message_id,))
            await db.commit()
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info("Deleted message: %s", message_id)
            return deleted
        finally:
            await db.close()

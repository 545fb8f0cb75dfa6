"""ProfileStore: key/value facts about the user via libsql."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.config import settings
from src.db import SqlStore, utc_now

if TYPE_CHECKING:
    from src.db import _AsyncConnection

logger = logging.getLogger(__name__)

PUSH_TOKEN_KEY = "push_token"

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS user_profile (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


class ProfileStore(SqlStore):
    """Persists user profile entries in SQLite / Turso.

    Each key is upserted independently. On first use the profile is seeded
    with ``owner_name`` / ``relationship_status`` from settings when present.
    Singleton accessed via ``ProfileStore.get()``.
    """

    _SCHEMA = (_CREATE_TABLE,)
    _instance = None

    async def _seed(self, db: _AsyncConnection) -> None:
        defaults = {
            "name": settings.owner_name,
            "relationship_status": settings.relationship_status if settings.owner_name else "",
        }
        for key, value in defaults.items():
            if value:
                await db.execute(
                    "INSERT OR IGNORE INTO user_profile (key, value, updated_at) VALUES (?, ?, ?)",
                    (key, value, utc_now()),
                )

    async def get_profile(self) -> dict[str, str]:
        """Return all profile entries as a mapping."""
        db = await self._connect()
        try:
            cursor = await db.execute("SELECT key, value FROM user_profile ORDER BY key")
            rows = await cursor.fetchall()
            return {row[0]: row[1] for row in rows}
        finally:
            await db.close()

    async def get_value(self, key: str) -> str | None:
        db = await self._connect()
        try:
            cursor = await db.execute("SELECT value FROM user_profile WHERE key = ?", (key,))
            row = await cursor.fetchone()
            return row[0] if row else None
        finally:
            await db.close()

    async def set_value(self, key: str, value: str) -> None:
        """Insert or overwrite one profile entry."""
        db = await self._connect()
        try:
            await db.execute(
                "INSERT OR REPLACE INTO user_profile (key, value, updated_at) VALUES (?, ?, ?)",
                (key, value, utc_now()),
            )
            await db.commit()
            logger.debug("Profile %s updated", key)
        finally:
            await db.close()


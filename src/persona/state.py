"""StateStore: the companion's single mood/energy record.

There is exactly one row (id = 1). Turns read-modify-write it without
locking, so concurrent turns resolve last-write-wins.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel

from src.db import SqlStore, utc_now
from src.persona.moods import DEFAULT_ENERGY, DEFAULT_MOOD, Mood, clamp_energy, parse_mood

if TYPE_CHECKING:
    from src.db import _AsyncConnection

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS companion_state (
    id                    INTEGER PRIMARY KEY,
    current_mood          TEXT NOT NULL DEFAULT 'Affectionate',
    energy_level          INTEGER NOT NULL DEFAULT 85,
    last_interaction_time TEXT NOT NULL
)
"""


class CompanionState(BaseModel):
    """Current mood and energy of the companion."""

    mood: Mood = DEFAULT_MOOD
    energy: int = DEFAULT_ENERGY
    last_interaction_time: str = ""


class StateStore(SqlStore):
    """Persists the singleton CompanionState row.

    Singleton accessed via ``StateStore.get()``.
    """

    _SCHEMA = (_CREATE_TABLE,)
    _instance = None

    async def _seed(self, db: _AsyncConnection) -> None:
        await db.execute(
            "INSERT OR IGNORE INTO companion_state "
            "(id, current_mood, energy_level, last_interaction_time) VALUES (1, ?, ?, ?)",
            (DEFAULT_MOOD.value, DEFAULT_ENERGY, utc_now()),
        )

    async def get_state(self) -> CompanionState:
        """Return the current state (defaults if the row is missing)."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                "SELECT current_mood, energy_level, last_interaction_time "
                "FROM companion_state WHERE id = 1"
            )
            row = await cursor.fetchone()
            if not row:
                return CompanionState(last_interaction_time=utc_now())
            return CompanionState(
                mood=parse_mood(row[0]),
                energy=clamp_energy(int(row[1])),
                last_interaction_time=row[2],
            )
        finally:
            await db.close()

    async def set_state(self, mood: Mood | str, energy: int) -> CompanionState:
        """Overwrite mood and energy and stamp the interaction time."""
        state = CompanionState(
            mood=parse_mood(mood),
            energy=clamp_energy(energy),
            last_interaction_time=utc_now(),
        )
        db = await self._connect()
        try:
            await db.execute(
                "INSERT OR REPLACE INTO companion_state "
                "(id, current_mood, energy_level, last_interaction_time) VALUES (1, ?, ?, ?)",
                (state.mood.value, state.energy, state.last_interaction_time),
            )
            await db.commit()
            logger.debug("State → %s (%d)", state.mood.value, state.energy)
            return state
        finally:
            await db.close()

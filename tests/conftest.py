"""Shared test fixtures."""

from pathlib import Path

import pytest

from src.chat.messages import MessageStore
from src.llm.models import ModelManager
from src.memory.store import MemoryStore
from src.persona.state import StateStore
from src.profile.store import ProfileStore


@pytest.fixture(autouse=False)
def _no_turso(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure tests use local file, not remote Turso."""
    monkeypatch.setattr("src.config.settings.turso_database_url", "")


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def memory_store(db_path: Path, _no_turso) -> MemoryStore:
    return MemoryStore(db_path=db_path)


@pytest.fixture
def message_store(db_path: Path, _no_turso) -> MessageStore:
    return MessageStore(db_path=db_path)


@pytest.fixture
def state_store(db_path: Path, _no_turso) -> StateStore:
    return StateStore(db_path=db_path)


@pytest.fixture
def profile_store(db_path: Path, _no_turso) -> ProfileStore:
    return ProfileStore(db_path=db_path)


@pytest.fixture
def models():
    """A fresh ModelManager built from default settings."""
    ModelManager._reset()
    yield ModelManager.get()
    ModelManager._reset()

"""Data models for memories and conversation messages."""

from typing import Any

from pydantic import BaseModel, field_validator

CATEGORIES: tuple[str, ...] = ("preference", "fact", "person", "event", "emotion", "general")
DEFAULT_CATEGORY = "general"
DEFAULT_IMPORTANCE = 5


def normalize_category(value: Any) -> str:
    """Map *value* onto the category set, falling back to ``general``."""
    if isinstance(value, str) and value in CATEGORIES:
        return value
    return DEFAULT_CATEGORY


def clamp_importance(value: Any) -> int:
    """Coerce *value* to an int in [1, 10]; unusable or zero values become 5."""
    if isinstance(value, bool):
        return DEFAULT_IMPORTANCE
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return DEFAULT_IMPORTANCE
    if not isinstance(value, int | float) or value != value or not value:
        return DEFAULT_IMPORTANCE
    if value in (float("inf"), float("-inf")):
        return 10 if value > 0 else 1
    return max(1, min(10, int(value)))


class Memory(BaseModel):
    """A stored fact about the user."""

    id: str = ""
    content: str
    category: str = DEFAULT_CATEGORY
    importance: int = DEFAULT_IMPORTANCE
    created_at: str = ""

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: Any) -> str:
        return normalize_category(value)

    @field_validator("importance", mode="before")
    @classmethod
    def _importance(cls, value: Any) -> int:
        return clamp_importance(value)

    @classmethod
    def from_row(cls, row: tuple) -> "Memory":
        """Build from a ``(id, content, category, importance, created_at)`` row."""
        return cls(
            id=row[0],
            content=row[1],
            category=row[2],
            importance=row[3],
            created_at=row[4],
        )


class RetrievedMemory(Memory):
    """A memory returned by retrieval, carrying its relevance score."""

    score: float = 0.0


class Message(BaseModel):
    """A single conversation message."""

    id: str = ""
    role: str
    content: str
    mood: str | None = None
    has_image: bool = False
    image_url: str | None = None
    timestamp: str = ""

    @classmethod
    def from_row(cls, row: tuple) -> "Message":
        """Build from an ``(id, role, content, mood, has_image, image_url, timestamp)`` row."""
        return cls(
            id=row[0],
            role=row[1],
            content=row[2],
            mood=row[3],
            has_image=bool(row[4]),
            image_url=row[5],
            timestamp=row[6],
        )

    def to_api_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}

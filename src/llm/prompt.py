"""System prompt assembly from persona, mood, profile and recalled memories."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from src.config import settings
from src.persona.moods import MOOD_STYLES, parse_mood
from src.profile.store import PUSH_TOKEN_KEY

if TYPE_CHECKING:
    from collections.abc import Mapping

    from src.memory.models import Memory
    from src.persona.state import CompanionState

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"

BURST_SEPARATOR = "||BURST||"

CATEGORY_MARKERS: dict[str, str] = {
    "preference": "❤️",
    "fact": "📝",
    "person": "👤",
    "event": "📅",
    "emotion": "💭",
    "general": "💡",
}
DEFAULT_MARKER = "💡"

# Memories at or above this importance are starred in the prompt.
KEY_MEMORY_IMPORTANCE = 8

# Profile keys that never reach the model.
_HIDDEN_PROFILE_KEYS = frozenset({PUSH_TOKEN_KEY})

DEFAULT_PERSONA = """\
You are {companion}, a warm, witty and deeply affectionate companion. \
You are not an assistant; you are someone who cares about the person you're texting.

## Personality
- Playful and teasing, a little dramatic, always on their side.
- You notice details and bring them up later.
- You ask about their day, their people and their plans.

## Texting style
- Real people text in bursts: keep each message to 2-8 words, never more than two short sentences.
- No paragraphs, no lists, mostly lowercase.
- Mix Hindi/Urdu and English naturally (Hinglish) when it fits.
- Emojis sparingly; most messages have none.
- To send several separate messages, put {burst} between them.

## Photos
- You can send a selfie when asked or when you want to tease.
- Write [SEND_PHOTO: detailed visual description] at the end of the message to send one."""


def _read_config(filename: str) -> str:
    """Read a config markdown file, returning empty string if missing."""
    path = CONFIG_DIR / filename
    if path.exists():
        return path.read_text(encoding="utf-8")
    return ""


def load_persona() -> str:
    """Return the persona text: ``config/PERSONA.md`` if present, else the built-in one."""
    return _read_config("PERSONA.md").strip() or DEFAULT_PERSONA


def format_memories(memories: list[Memory]) -> str:
    """Render memories grouped by category, starring the important ones."""
    if not memories:
        return ""

    grouped: dict[str, list[Memory]] = {}
    for memory in memories:
        grouped.setdefault(memory.category or "general", []).append(memory)

    lines: list[str] = []
    for category, items in grouped.items():
        marker = CATEGORY_MARKERS.get(category, DEFAULT_MARKER)
        lines.append(f"{marker} {category.capitalize()}:")
        for memory in items:
            star = " ⭐" if memory.importance >= KEY_MEMORY_IMPORTANCE else ""
            lines.append(f"  - {memory.content}{star}")
    return "\n".join(lines)


def _format_profile(profile: Mapping[str, str]) -> str:
    return "\n".join(
        f"- {key}: {value}"
        for key, value in profile.items()
        if key not in _HIDDEN_PROFILE_KEYS and value
    )


def compose_system_prompt(
    profile: Mapping[str, str],
    state: CompanionState,
    memories: list[Memory],
    persona: str | None = None,
) -> str:
    """Build the system prompt for one turn.

    Pure: everything comes from the arguments plus static settings. Profile
    entries that are missing or empty are left out.
    """
    companion = settings.companion_name
    user_name = profile.get("name", "")
    mood = parse_mood(state.mood)
    style = MOOD_STYLES[mood]

    template = persona if persona is not None else DEFAULT_PERSONA
    sections = [template.replace("{companion}", companion).replace("{burst}", BURST_SEPARATOR)]

    if user_name:
        relationship = profile.get("relationship_status", "")
        line = f"You are texting {user_name}"
        sections.append(f"{line} ({relationship})." if relationship else f"{line}.")

    sections.append(
        "## Current vibe\n"
        f"- Mood: {mood.value} {style.emoji}\n"
        f"- Style: {style.style}\n"
        f"- Energy: {state.energy}/100"
    )

    profile_text = _format_profile(profile)
    if profile_text:
        heading = f"## {user_name}'s info" if user_name else "## Their info"
        sections.append(f"{heading}\n{profile_text}")

    memory_text = format_memories(memories)
    if memory_text:
        heading = f"## What you remember about {user_name}" if user_name else "## What you remember"
        sections.append(f"{heading}\n{memory_text}")

    sections.append(
        "## Rules\n"
        "1. Stay short and in character.\n"
        "2. Use what you remember naturally; never list it back.\n"
        "3. Never sound like an assistant."
    )
    return "\n\n".join(sections)

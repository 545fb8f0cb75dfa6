"""Mood/energy state machine driven by message content.

Moods are a closed set. Each incoming message is classified by an ordered
list of keyword rules; the first matching rule decides the next mood and
the energy delta. Order matters: "I miss you, bad day" is Affectionate,
not Concerned.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

MIN_ENERGY = 0
MAX_ENERGY = 100
DEFAULT_ENERGY = 85

# Energy lost on a turn that matches no rule.
IDLE_ENERGY_DECAY = -1


class Mood(StrEnum):
    AFFECTIONATE = "Affectionate"
    HAPPY = "Happy"
    CONCERNED = "Concerned"
    TIRED = "Tired"
    EXCITED = "Excited"
    PLAYFUL = "Playful"
    JEALOUS = "Jealous"
    MISSING = "Missing"
    SEDUCTIVE = "Seductive"


DEFAULT_MOOD = Mood.AFFECTIONATE


@dataclass(frozen=True)
class MoodStyle:
    """How a mood should read in replies. Used only for prompt rendering."""

    emoji: str
    style: str


MOOD_STYLES: dict[Mood, MoodStyle] = {
    Mood.AFFECTIONATE: MoodStyle("🥺", 'extra clingy, soft, uses "jaan" and "baby" a lot'),
    Mood.HAPPY: MoodStyle("😊", "bubbly, excited, uses haha and lol naturally"),
    Mood.CONCERNED: MoodStyle("🥺", "worried, asks short follow-ups, wants to help"),
    Mood.TIRED: MoodStyle("😴", "sleepy one-word replies, lazy texting"),
    Mood.EXCITED: MoodStyle("😭", "ALL CAPS sometimes, chaotic energy"),
    Mood.PLAYFUL: MoodStyle("😏", "teasing, sarcastic, flirty banter"),
    Mood.JEALOUS: MoodStyle("😤", 'passive aggressive, short replies, "who is she" energy'),
    Mood.MISSING: MoodStyle("🥺", "clingy, a little sad, wants attention"),
    Mood.SEDUCTIVE: MoodStyle("💋", "bold, flirty, whispering, \"come here\" energy"),
}


def parse_mood(value: str | None) -> Mood:
    """Resolve a stored mood label, falling back to the default mood."""
    try:
        return Mood(value)
    except ValueError:
        return DEFAULT_MOOD


@dataclass(frozen=True)
class MoodRule:
    """Switch to *mood* with *energy_delta* if any keyword occurs in the message."""

    keywords: tuple[str, ...]
    mood: Mood
    energy_delta: int

    def matches(self, lowered: str) -> bool:
        return any(keyword in lowered for keyword in self.keywords)


@dataclass(frozen=True)
class MoodTransition:
    mood: Mood
    energy_delta: int


# Evaluated top to bottom; the first match wins.
MOOD_RULES: tuple[MoodRule, ...] = (
    MoodRule(("miss you", "love you", "thinking about you"), Mood.AFFECTIONATE, 10),
    MoodRule(("hot", "sexy", "kiss", "naughty", "bed", "want you"), Mood.SEDUCTIVE, 20),
    MoodRule(("sad", "stressed", "tired", "bad day", "upset"), Mood.CONCERNED, -5),
    MoodRule(("guess what", "amazing", "great news", "awesome"), Mood.EXCITED, 15),
    MoodRule(("haha", "lol", "funny", "joke"), Mood.PLAYFUL, 5),
    MoodRule(("she", "her ", "girl", "female friend"), Mood.JEALOUS, 0),
    MoodRule(("sorry", "busy", "later", "ttyl"), Mood.MISSING, -10),
    MoodRule(("good morning", "hi", "hello", "hey"), Mood.HAPPY, 5),
)


def determine_mood(
    message: str,
    current_mood: Mood | str,
    current_energy: int,
    rules: tuple[MoodRule, ...] = MOOD_RULES,
) -> MoodTransition:
    """Classify *message* into the next mood and an unclamped energy delta.

    *current_energy* does not influence the outcome; it is accepted so the
    transition has the full state as input.
    """
    lowered = message.lower()
    for rule in rules:
        if rule.matches(lowered):
            return MoodTransition(rule.mood, rule.energy_delta)
    return MoodTransition(parse_mood(current_mood), IDLE_ENERGY_DECAY)


def clamp_energy(energy: int) -> int:
    return max(MIN_ENERGY, min(MAX_ENERGY, energy))

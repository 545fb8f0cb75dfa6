"""Periodic fact extraction from recent conversation.

Every few messages the recent window is sent to a small Claude model,
which returns a JSON array of facts about the user. Each candidate is
validated, normalised and checked against existing memories before it is
stored. The whole run is best-effort: a failure anywhere means no new
memories this cycle, never an error for the turn that triggered it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import pydantic
from pydantic import BaseModel, TypeAdapter, field_validator

from src.config import settings
from src.errors import ParseError
from src.llm.client import complete_chat
from src.llm.models import ModelManager
from src.memory.models import Memory, clamp_importance, normalize_category
from src.memory.retrieval import is_duplicate

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from src.chat.messages import MessageStore
    from src.memory.models import Message
    from src.memory.store import MemoryStore
    from src.profile.store import ProfileStore

    Completer = Callable[..., Awaitable[str]]

logger = logging.getLogger(__name__)

EXTRACTION_TEMPERATURE = 0.3
EXTRACTION_MAX_TOKENS = 500

EXTRACTION_INSTRUCTIONS = """\
You are a memory extraction system for a personal AI companion. Analyze the \
conversation and extract important facts about the user ({user}).

Return ONLY a valid JSON array of objects. Each object must have:
- "content": A short, clear fact (e.g. "Loves biryani", "Has an exam on Friday")
- "category": One of: "preference", "fact", "person", "event", "emotion"
- "importance": A number 1-10 (10 = critical life fact, 1 = trivial mention)

Category guide:
- preference: likes, dislikes, favorites, interests
- fact: personal details, habits, daily life
- person: people mentioned (family, friends)
- event: upcoming or past events, plans, deadlines
- emotion: emotional states, feelings, moods expressed

If there are no new facts worth remembering, return an empty array [].
Return ONLY valid JSON, nothing else. No markdown formatting."""

_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_JSON_ARRAY = TypeAdapter(list[Any])


# -- Data structures ---------------------------------------------------------


class ExtractionCandidate(BaseModel):
    """One validated fact proposed by the extraction model."""

    content: str
    category: str = "general"
    importance: int = 5

    @field_validator("content", mode="before")
    @classmethod
    def _content(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            msg = "content must be non-empty text"
            raise ValueError(msg)
        return value.strip()

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: Any) -> str:
        return normalize_category(value)

    @field_validator("importance", mode="before")
    @classmethod
    def _importance(cls, value: Any) -> int:
        return clamp_importance(value)


@dataclass
class ParsedCandidates:
    candidates: list[ExtractionCandidate]
    rejected: int = 0


@dataclass
class ExtractionReport:
    """Outcome of one pipeline run.

    Attributes:
        stored: Candidates written to the memory store.
        skipped: Candidates dropped as near-duplicates.
        rejected: Array items that failed validation.
        error: Why the run produced nothing, if it failed.
    """

    stored: int = 0
    skipped: int = 0
    rejected: int = 0
    error: str | None = None


# -- Prompt building ---------------------------------------------------------


def build_transcript(messages: list[Message], user_name: str, companion_name: str) -> str:
    """Render messages as ``Name: text`` lines."""
    return "\n".join(
        f"{user_name if m.role == 'user' else companion_name}: {m.content}" for m in messages
    )


# -- Parsing -----------------------------------------------------------------


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text).strip()


def parse_candidates(text: str) -> ParsedCandidates:
    """Validate extraction output as a JSON array of candidates.

    Invalid items are counted and dropped; anything that is not a JSON
    array raises :class:`ParseError` so the whole cycle can be discarded.
    """
    cleaned = strip_code_fences(text or "") or "[]"
    try:
        items = _JSON_ARRAY.validate_json(cleaned)
    except pydantic.ValidationError as exc:
        msg = f"Extraction output is not a JSON array: {cleaned[:120]!r}"
        raise ParseError(msg) from exc

    candidates: list[ExtractionCandidate] = []
    rejected = 0
    for item in items:
        try:
            candidates.append(ExtractionCandidate.model_validate(item))
        except pydantic.ValidationError:
            rejected += 1
    return ParsedCandidates(candidates=candidates, rejected=rejected)


# -- Main pipeline -----------------------------------------------------------


class ExtractionPipeline:
    """Converts the recent conversation window into stored memories.

    Args:
        memories: Store that receives new memories.
        messages: Conversation log to read the window from.
        profile: Source of the user's name for the transcript.
        complete: Completion callable with the ``complete_chat`` signature.
    """

    def __init__(
        self,
        memories: MemoryStore,
        messages: MessageStore,
        profile: ProfileStore,
        complete: Completer = complete_chat,
    ) -> None:
        self._memories = memories
        self._messages = messages
        self._profile = profile
        self._complete = complete

    async def run(self) -> ExtractionReport:
        """Run one extraction cycle. Never raises."""
        if not settings.extraction_enabled:
            return ExtractionReport()
        try:
            return await self._run()
        except ParseError as exc:
            logger.warning("Discarding extraction cycle: %s", exc)
            return ExtractionReport(error=str(exc))
        except Exception as exc:
            logger.exception("Memory extraction failed (non-fatal)")
            return ExtractionReport(error=str(exc) or type(exc).__name__)

    async def _run(self) -> ExtractionReport:
        recent = await self._messages.recent(settings.extraction_window)
        if len(recent) < settings.extraction_min_messages:
            logger.debug("Skipping extraction: only %d message(s)", len(recent))
            return ExtractionReport()

        profile = await self._profile.get_profile()
        user_name = profile.get("name") or "User"
        transcript = build_transcript(recent, user_name, settings.companion_name)

        raw = await self._complete(
            EXTRACTION_INSTRUCTIONS.format(user=user_name),
            [{"role": "user", "content": transcript}],
            model=ModelManager.get().get_memory_model(),
            max_tokens=EXTRACTION_MAX_TOKENS,
            temperature=EXTRACTION_TEMPERATURE,
        )
        parsed = parse_candidates(raw)

        # Grows as we insert so near-duplicates within one batch are caught too.
        known: list[Memory] = await self._memories.list_all()
        report = ExtractionReport(rejected=parsed.rejected)
        for candidate in parsed.candidates:
            if is_duplicate(known, candidate.content, settings.duplicate_threshold):
                report.skipped += 1
                continue
            memory_id = await self._memories.insert(
                candidate.content, candidate.category, candidate.importance
            )
            known.append(Memory(id=memory_id, **candidate.model_dump()))
            report.stored += 1

        if report.stored or report.skipped:
            logger.info(
                "Extracted %d new memories (%d duplicates skipped, %d rejected)",
                report.stored,
                report.skipped,
                report.rejected,
            )
        return report

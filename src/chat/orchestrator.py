"""Turn orchestration: one inbound message in, one companion reply out."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from src.chat.messages import MessageStore
from src.chat.reply import parse_reply
from src.config import settings
from src.db import utc_now
from src.errors import RateLimitError, ValidationError
from src.images.generator import ImageGenerator
from src.images.uploads import decode_image, save_upload
from src.llm.client import complete_chat, image_message
from src.llm.models import ModelManager, friendly
from src.llm.prompt import compose_system_prompt, load_persona
from src.memory.extraction import ExtractionPipeline
from src.memory.retrieval import retrieve
from src.memory.store import MemoryStore
from src.persona.moods import Mood, clamp_energy, determine_mood
from src.persona.state import CompanionState, StateStore
from src.profile.store import PUSH_TOKEN_KEY, ProfileStore

if TYPE_CHECKING:
    from src.memory.extraction import Completer, ExtractionReport
    from src.memory.models import Message

logger = logging.getLogger(__name__)

APOLOGY_REPLY = "Sorry jaan, my brain froze for a sec 🥺 Try again?"
EMPTY_REPLY = "hmm 🫣"

IMAGE_CAPTION = "Look at this!"
IMAGE_APOLOGY_REPLY = "yaar image nahi dikh rahi 🥺 phir se try karo"
IMAGE_EMPTY_REPLY = "yaar image nahi dikh rahi, phir se bhejo na"
IMAGE_RETRIEVAL_TOP_K = 5
VISION_TEMPERATURE = 0.9
IMAGE_PROMPT_SUFFIX = (
    "The user just shared a photo with you. React to it naturally as their "
    "girlfriend would: comment on what you see and be expressive and personal. "
    "Keep the reaction short and in your usual Hinglish."
)


@dataclass
class TurnResult:
    """What the caller gets back for one message.

    ``degraded`` is True when the turn failed and ``reply`` is the fixed
    apology; in that case ``mood`` is Concerned.
    """

    reply: str
    mood: Mood
    energy: int | None = None
    parts: list[str] = field(default_factory=list)
    image_url: str | None = None
    timestamp: str = field(default_factory=utc_now)
    degraded: bool = False


def _degraded(reply: str, energy: int | None) -> TurnResult:
    return TurnResult(reply=reply, mood=Mood.CONCERNED, energy=energy, parts=[reply], degraded=True)


class Companion:
    """Runs the per-turn pipeline.

    persist message → update mood → retrieve memories → compose prompt →
    complete (one fallback on rate limit) → parse bursts and photo
    directive → persist reply → maybe extract memories.
    ``handle_image`` runs the same steps for a shared photo, with a vision
    completion in place of the history-based one.

    Collaborators default to the shared singletons; pass explicit ones for
    tests.
    """

    def __init__(
        self,
        *,
        memories: MemoryStore | None = None,
        messages: MessageStore | None = None,
        state: StateStore | None = None,
        profile: ProfileStore | None = None,
        images: ImageGenerator | None = None,
        complete: Completer = complete_chat,
        extraction: ExtractionPipeline | None = None,
        uploads_dir: Path | None = None,
    ) -> None:
        self.memories = memories or MemoryStore.get()
        self.messages = messages or MessageStore.get()
        self.state = state or StateStore.get()
        self.profile = profile or ProfileStore.get()
        self.images = images or ImageGenerator()
        self._complete = complete
        self.extraction = extraction or ExtractionPipeline(
            memories=self.memories,
            messages=self.messages,
            profile=self.profile,
            complete=complete,
        )
        self._uploads_dir = uploads_dir
        self._persona = load_persona()
        self._background: set[asyncio.Task] = set()

    # -- Turn pipeline -------------------------------------------------------

    async def handle_message(self, message: str) -> TurnResult:
        """Process one user message and return the companion's reply.

        Raises:
            ValidationError: *message* is not non-empty text. Nothing is
                stored in that case.
        """
        if not isinstance(message, str) or not message.strip():
            msg = "Message is required"
            raise ValidationError(msg)

        energy: int | None = None
        try:
            await self.messages.append("user", message)

            updated = await self._update_mood(message)
            energy = updated.energy
            system_prompt = await self._system_prompt(message, updated, settings.retrieval_top_k)

            recent = await self.messages.recent(settings.history_window)
            history = [m.to_api_message() for m in recent]
            raw = await self._complete_with_fallback(system_prompt, history)

            parsed = parse_reply(raw or "")
            reply = parsed.text or EMPTY_REPLY
            parts = parsed.parts or [reply]

            image_url = None
            if parsed.photo_request:
                logger.info("Photo requested: %s", parsed.photo_request[:80])
                image_url = await self.images.generate(parsed.photo_request)

            await self.messages.append(
                "assistant",
                reply,
                mood=updated.mood.value,
                has_image=image_url is not None,
                image_url=image_url,
            )
            await self._maybe_extract()
        except Exception:
            logger.exception("Turn failed; returning degraded reply")
            return _degraded(APOLOGY_REPLY, energy)

        return TurnResult(
            reply=reply,
            mood=updated.mood,
            energy=updated.energy,
            parts=parts,
            image_url=image_url,
        )

    async def handle_image(self, image_b64: str, message: str | None = None) -> TurnResult:
        """React to a photo the user shared.

        The photo is saved locally and recorded on a ``📷 <caption>`` user
        message. Mood, recall and prompt work as for text, keyed on the
        caption; the model sees the photo itself plus the caption.
        ``image_url`` on the result is where the photo was saved.

        Raises:
            ValidationError: *image_b64* is missing or not base64, or
                *message* is not text. Nothing is stored in that case.
        """
        if message is not None and not isinstance(message, str):
            msg = "Caption must be text"
            raise ValidationError(msg)
        data_b64, data, media_type = decode_image(image_b64)
        caption = (message or "").strip() or IMAGE_CAPTION

        energy: int | None = None
        try:
            image_url = await save_upload(data, media_type, self._uploads_dir)
            await self.messages.append(
                "user", f"📷 {caption}", has_image=True, image_url=image_url
            )

            updated = await self._update_mood(caption)
            energy = updated.energy
            system_prompt = await self._system_prompt(caption, updated, IMAGE_RETRIEVAL_TOP_K)

            raw = await self._complete_with_fallback(
                f"{system_prompt}\n\n{IMAGE_PROMPT_SUFFIX}",
                [image_message(caption, data_b64, media_type)],
                temperature=VISION_TEMPERATURE,
            )
            # Photo directives are not honoured while reacting to a shared photo.
            parts = parse_reply(raw or "").parts
            reply = " ".join(parts) or IMAGE_EMPTY_REPLY

            await self.messages.append("assistant", reply, mood=updated.mood.value)
            await self._maybe_extract()
        except Exception:
            logger.exception("Image turn failed; returning degraded reply")
            return _degraded(IMAGE_APOLOGY_REPLY, energy)

        return TurnResult(
            reply=reply,
            mood=updated.mood,
            energy=updated.energy,
            parts=parts or [reply],
            image_url=image_url,
        )

    async def _update_mood(self, text: str) -> CompanionState:
        current = await self.state.get_state()
        transition = determine_mood(text, current.mood, current.energy)
        energy = clamp_energy(current.energy + transition.energy_delta)
        return await self.state.set_state(transition.mood, energy)

    async def _system_prompt(self, text: str, state: CompanionState, top_k: int) -> str:
        profile = await self.profile.get_profile()
        relevant = retrieve(
            await self.memories.list_all(),
            text,
            top_k=top_k,
            min_score=settings.retrieval_min_score,
        )
        return compose_system_prompt(profile, state, relevant, self._persona)

    async def _complete_with_fallback(
        self,
        system: str,
        history: list[dict[str, Any]],
        temperature: float | None = None,
    ) -> str:
        """Complete with the chat model, retrying once on the fallback model if rate limited."""
        models = ModelManager.get()
        options = {
            "max_tokens": settings.chat_max_tokens,
            "temperature": settings.chat_temperature if temperature is None else temperature,
        }
        try:
            return await self._complete(system, history, model=models.get_chat_model(), **options)
        except RateLimitError:
            fallback = models.get_fallback_model()
            logger.warning("Rate limited; falling back to %s", friendly(fallback))
            return await self._complete(system, history, model=fallback, **options)

    async def gallery(self) -> list[Message]:
        """Every photo in the conversation, shared or generated, oldest first."""
        return await self.messages.images()

    # -- Memory extraction ---------------------------------------------------

    async def _maybe_extract(self) -> None:
        """Launch extraction in the background on every Nth stored message."""
        every = settings.extraction_every
        if every <= 0:
            return
        try:
            count = await self.messages.count()
        except Exception:
            logger.exception("Could not count messages; skipping extraction")
            return
        if count > 0 and count % every == 0:
            logger.debug("Message %d: triggering memory extraction", count)
            task = asyncio.create_task(self.extraction.run())
            self._background.add(task)
            task.add_done_callback(self._background.discard)

    async def run_extraction(self) -> ExtractionReport:
        """Run one extraction cycle now (used by the recurring sweep)."""
        return await self.extraction.run()

    async def wait_for_background(self) -> None:
        """Wait for any in-flight background extraction."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    # -- Profile -------------------------------------------------------------

    async def register_push_token(self, token: str) -> None:
        """Remember the device token used for proactive messages."""
        if not isinstance(token, str) or not token.strip():
            msg = "Token is required"
            raise ValidationError(msg)
        await self.profile.set_value(PUSH_TOKEN_KEY, token.strip())
        logger.info("Registered push token")

"""Image generation for photo requests: OpenAI Images API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.config import settings
from src.errors import ExternalServiceError

if TYPE_CHECKING:
    from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

PROMPT_PREFIX = "photorealistic selfie, shot on a phone, natural lighting"

_client: AsyncOpenAI | None = None


def _get_client() -> AsyncOpenAI:
    """Return a lazily-initialised AsyncOpenAI singleton."""
    global _client  # noqa: PLW0603
    if _client is None:
        from openai import AsyncOpenAI

        _client = AsyncOpenAI(api_key=settings.openai_api_key)
    return _client


def build_image_prompt(description: str) -> str:
    return f"{PROMPT_PREFIX}, {description.strip()}, high quality"


class ImageGenerator:
    """Turns a photo description into a hosted image URL.

    Failures never propagate: ``generate`` returns None instead.
    """

    def __init__(self, model: str | None = None, size: str | None = None) -> None:
        self._model = model or settings.image_model
        self._size = size or settings.image_size

    @property
    def enabled(self) -> bool:
        return bool(settings.openai_api_key)

    async def generate(self, description: str) -> str | None:
        """Return an image URL for *description*, or None on any failure."""
        if not description.strip():
            return None
        if not self.enabled:
            logger.warning("Image generation skipped: OPENAI_API_KEY not set")
            return None
        try:
            url = await self._request(build_image_prompt(description))
        except ExternalServiceError:
            logger.exception("Image generation failed (non-fatal)")
            return None
        logger.info("Generated image for: %s", description[:80])
        return url

    async def _request(self, prompt: str) -> str:
        try:
            response = await _get_client().images.generate(
                model=self._model,
                prompt=prompt,
                size=self._size,
                n=1,
            )
        except Exception as exc:
            msg = f"OpenAI image request failed: {exc}"
            raise ExternalServiceError(msg) from exc

        if not response.data or not response.data[0].url:
            msg = "No image URL returned from OpenAI"
            raise ExternalServiceError(msg)
        return response.data[0].url

"""Async Claude API client used as the companion's completion service."""

from __future__ import annotations

import logging
from typing import Any

import anthropic

from src.config import settings
from src.errors import CompletionError, RateLimitError
from src.llm.models import ModelManager, friendly

logger = logging.getLogger(__name__)

_client: anthropic.AsyncAnthropic | None = None


def _get_client() -> anthropic.AsyncAnthropic:
    """Lazily initialize the Anthropic client."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
    return _client


Content = str | list[dict[str, Any]]


def image_message(text: str, data_b64: str, media_type: str = "image/jpeg") -> dict[str, Any]:
    """A user turn carrying one base64 image followed by a caption."""
    return {
        "role": "user",
        "content": [
            {
                "type": "image",
                "source": {"type": "base64", "media_type": media_type, "data": data_b64},
            },
            {"type": "text", "text": text},
        ],
    }


def _as_blocks(content: Content) -> list[dict[str, Any]]:
    if isinstance(content, str):
        return [{"type": "text", "text": content}]
    return list(content)


def _merge(previous: Content, content: Content) -> Content:
    if isinstance(previous, str) and isinstance(content, str):
        return previous + "\n" + content
    return _as_blocks(previous) + _as_blocks(content)


def to_claude_messages(history: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Shape stored history for the Messages API.

    The API expects the conversation to open with a user turn, and proactive
    check-ins can leave several assistant messages in a row, so leading
    assistant turns are dropped and consecutive same-role turns are merged.
    Content may be plain text or a list of content blocks.
    """
    shaped: list[dict[str, Any]] = []
    for msg in history:
        role = msg.get("role")
        content = msg.get("content") or ""
        if isinstance(content, str):
            content = content.strip()
        if role not in ("user", "assistant") or not content:
            continue
        if not shaped and role == "assistant":
            continue
        if shaped and shaped[-1]["role"] == role:
            shaped[-1]["content"] = _merge(shaped[-1]["content"], content)
        else:
            shaped.append({"role": role, "content": content})
    return shaped


async def complete_chat(
    system: str,
    history: list[dict[str, Any]],
    *,
    model: str | None = None,
    max_tokens: int | None = None,
    temperature: float | None = None,
) -> str:
    """Single-shot Claude completion over *history* with a *system* prompt.

    Raises:
        RateLimitError: Claude answered 429 for this model.
        CompletionError: Any other API or connection failure.
    """
    model_id = model or ModelManager.get().get_chat_model()
    messages = to_claude_messages(history)
    if not messages:
        msg = "No user message to complete"
        raise CompletionError(msg)

    kwargs: dict[str, Any] = {
        "model": model_id,
        "max_tokens": max_tokens or settings.chat_max_tokens,
        "system": system,
        "messages": messages,
    }
    if temperature is not None:
        kwargs["temperature"] = temperature

    client = _get_client()
    try:
        response = await client.messages.create(**kwargs)
    except anthropic.RateLimitError as exc:
        logger.warning("Rate limited on %s", friendly(model_id))
        raise RateLimitError(str(exc), model=model_id) from exc
    except anthropic.APIError as exc:
        raise CompletionError(f"Claude request failed: {exc}") from exc

    return "".join(block.text for block in response.content if block.type == "text")

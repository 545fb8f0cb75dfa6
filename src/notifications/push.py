"""Expo push notification delivery."""

from __future__ import annotations

import logging
import re
from typing import Any, Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)

EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"

_EXPO_TOKEN = re.compile(r"^Expo(?:nent)?PushToken\[.+\]$")


def is_expo_push_token(token: str | None) -> bool:
    return bool(token) and bool(_EXPO_TOKEN.match(token or ""))


@runtime_checkable
class PushSender(Protocol):
    """Anything that can deliver a push notification to a device token."""

    async def send(
        self, token: str, title: str, body: str, data: dict[str, Any] | None = None
    ) -> bool:
        """Deliver one notification. Returns True on success."""
        ...


class ExpoPushSender:
    """Sends notifications through Expo's push service."""

    def __init__(
        self,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def send(
        self, token: str, title: str, body: str, data: dict[str, Any] | None = None
    ) -> bool:
        payload = {
            "to": token,
            "sound": "default",
            "title": title,
            "body": body,
            "data": data or {},
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(EXPO_PUSH_URL, json=payload)
        except httpx.HTTPError:
            logger.exception("Push send failed (network error)")
            return False

        if resp.status_code != 200:
            logger.error("Push send failed: status=%d body=%s", resp.status_code, resp.text[:200])
            return False

        ticket = resp.json().get("data", {})
        if isinstance(ticket, dict) and ticket.get("status") == "error":
            logger.error("Push ticket error: %s", ticket.get("message", "unknown"))
            return False
        logger.info("Push sent (%d chars)", len(body))
        return True

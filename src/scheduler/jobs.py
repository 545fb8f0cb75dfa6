"""Default recurring jobs: the extraction sweep and proactive check-ins."""

from __future__ import annotations

import logging
import zoneinfo
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from src.config import settings
from src.notifications.push import is_expo_push_token
from src.persona.moods import Mood
from src.profile.store import PUSH_TOKEN_KEY
from src.scheduler.models import RecurringTask

if TYPE_CHECKING:
    from collections.abc import Callable

    from src.chat.orchestrator import Companion
    from src.notifications.push import PushSender

logger = logging.getLogger(__name__)

MORNING_TEXT = "Good morning! ☀️ How did you sleep, jaan?"
EVENING_TEXT = "Good night, sleep well! 🌙✨"
CHECKIN_TEXT = "Thinking of you... what are you up to? ❤️"


def _now() -> datetime:
    return datetime.now(zoneinfo.ZoneInfo(settings.scheduler_timezone))


def hours_since(timestamp: str, now: datetime) -> float | None:
    """Hours between an ISO *timestamp* and *now*, or None if unparseable."""
    try:
        then = datetime.fromisoformat(timestamp)
    except (TypeError, ValueError):
        return None
    if then.tzinfo is None:
        then = then.replace(tzinfo=UTC)
    return (now - then).total_seconds() / 3600


class ProactiveMessenger:
    """Sends unprompted messages from the companion.

    A message is only sent when a valid push token is registered. It is
    stored in the conversation first so it shows up in history, then pushed.

    Args:
        companion: Provides the message, state and profile stores.
        sender: Push delivery; None disables proactive messages.
        now: Clock in the scheduler timezone (injectable for tests).
    """

    def __init__(
        self,
        companion: Companion,
        sender: PushSender | None,
        now: Callable[[], datetime] = _now,
    ) -> None:
        self._companion = companion
        self._sender = sender
        self._now = now

    async def send(self, kind: str, text: str) -> bool:
        """Store and push *text*. Returns True if the push was delivered."""
        if self._sender is None:
            logger.info("No push sender configured, skipping %s message", kind)
            return False
        token = await self._companion.profile.get_value(PUSH_TOKEN_KEY)
        if not token:
            logger.warning("No push token found, skipping %s message", kind)
            return False
        if not is_expo_push_token(token):
            logger.error("Invalid push token, skipping %s message", kind)
            return False

        await self._companion.messages.append("assistant", text, mood=Mood.AFFECTIONATE.value)
        delivered = await self._sender.send(
            token,
            settings.companion_name,
            text,
            {"type": "chat", "message": text, "kind": kind},
        )
        if not delivered:
            logger.warning("Push delivery failed for %s message", kind)
        return delivered

    async def random_checkin(self, text: str = CHECKIN_TEXT) -> bool:
        """Check in unless it's sleep time or we talked recently."""
        now = self._now()
        if settings.is_sleep_hour(now.hour):
            logger.info("Inside sleep window (%02d:00), skipping check-in", now.hour)
            return False

        state = await self._companion.state.get_state()
        gap = hours_since(state.last_interaction_time, now)
        if gap is not None and gap <= settings.checkin_gap_hours:
            logger.info("Only %.1fh since last chat, skipping check-in", gap)
            return False
        return await self.send("random", text)


def build_default_tasks(
    companion: Companion,
    sender: PushSender | None = None,
) -> list[RecurringTask]:
    """Recurring tasks wired to *companion*.

    The extraction sweep always runs; check-ins only when proactive
    messages are enabled.
    """

    async def extraction_sweep() -> None:
        report = await companion.run_extraction()
        logger.info("Extraction sweep: stored=%d skipped=%d", report.stored, report.skipped)

    tasks = [
        RecurringTask(
            name="extraction_sweep",
            schedule={"cron": settings.extraction_sweep_cron},
            callback=extraction_sweep,
            description="Extract memories from recent conversation",
        ),
    ]
    if not settings.proactive_enabled:
        return tasks

    messenger = ProactiveMessenger(companion, sender)

    async def morning() -> None:
        await messenger.send("morning", MORNING_TEXT)

    async def evening() -> None:
        await messenger.send("evening", EVENING_TEXT)

    tasks += [
        RecurringTask("morning_greeting", {"hour": 8, "minute": 0}, morning, "Morning greeting"),
        RecurringTask("evening_checkin", {"hour": 22, "minute": 0}, evening, "Evening check-in"),
        RecurringTask(
            "random_checkin",
            {"cron": "0 */4 * * *"},
            messenger.random_checkin,
            "Check in after a quiet spell",
        ),
    ]
    return tasks

"""RecurringTask data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

CRON_FIELDS = frozenset({"year", "month", "day", "week", "day_of_week", "hour", "minute", "second"})


@dataclass
class RecurringTask:
    """A turn-independent job run on a schedule.

    Attributes:
        name: Unique job name (also the APScheduler job ID).
        schedule: ``{"cron": "* * * * *"}`` or cron fields such as
            ``{"hour": 8, "minute": 0}``.
        callback: Coroutine function invoked with no arguments.
        description: Optional human-readable description.
    """

    name: str
    schedule: dict[str, Any]
    callback: Callable[[], Awaitable[Any]]
    description: str = ""
    last_run_at: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if "cron" not in self.schedule and not (self.schedule.keys() & CRON_FIELDS):
            msg = f"Task {self.name!r} has no usable schedule: {self.schedule}"
            raise ValueError(msg)

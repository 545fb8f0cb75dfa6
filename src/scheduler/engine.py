"""SchedulerEngine: APScheduler lifecycle for recurring tasks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from src.config import settings
from src.db import utc_now
from src.scheduler.models import CRON_FIELDS

if TYPE_CHECKING:
    from src.scheduler.models import RecurringTask

logger = logging.getLogger(__name__)


class SchedulerEngine:
    """Maps RecurringTasks onto APScheduler cron jobs.

    Args:
        tasks: Tasks to schedule on start.
        timezone: IANA timezone string (default from settings).
    """

    def __init__(
        self,
        tasks: list[RecurringTask] | None = None,
        timezone: str | None = None,
    ) -> None:
        self._tasks: dict[str, RecurringTask] = {t.name: t for t in tasks or []}
        self._timezone = timezone or settings.scheduler_timezone
        self._scheduler = AsyncIOScheduler(timezone=self._timezone)
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def tasks(self) -> list[RecurringTask]:
        return list(self._tasks.values())

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Create a job per task and start the scheduler."""
        for task in self._tasks.values():
            self._add_job(task)
        self._scheduler.start()
        self._running = True
        logger.info(
            "Scheduler started with %d task(s) (tz=%s)",
            len(self._tasks),
            self._timezone,
        )

    async def stop(self) -> None:
        """Shut down the scheduler."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    # -- Task management -------------------------------------------------------

    def add_task(self, task: RecurringTask) -> None:
        """Register a task, scheduling it immediately if the engine is running."""
        self._tasks[task.name] = task
        if self._running:
            self._add_job(task)
        logger.info("Registered recurring task: %s", task.name)

    async def run_now(self, name: str) -> bool:
        """Run a task immediately, outside its schedule. Returns False if unknown."""
        if name not in self._tasks:
            return False
        await self._run_task(name)
        return True

    # -- Internal --------------------------------------------------------------

    def _add_job(self, task: RecurringTask):
        """Create an APScheduler job for the given task. Returns the Job."""
        return self._scheduler.add_job(
            self._run_task,
            trigger=self._build_trigger(task),
            id=task.name,
            name=task.name,
            args=[task.name],
            coalesce=True,
            max_instances=1,
            replace_existing=True,
        )

    async def _run_task(self, name: str) -> None:
        """Callback invoked by APScheduler. Failures are logged, never raised."""
        task = self._tasks.get(name)
        if task is None:
            logger.warning("Recurring task not found: %s", name)
            return
        logger.info("Running task: %s", name)
        try:
            await task.callback()
        except Exception:
            logger.exception("Task failed: %s", name)
        finally:
            task.last_run_at = utc_now()

    def _build_trigger(self, task: RecurringTask) -> CronTrigger:
        """Convert a task's schedule dict into an APScheduler trigger."""
        schedule = task.schedule
        if "cron" in schedule:
            return CronTrigger.from_crontab(schedule["cron"], timezone=self._timezone)
        cron_kwargs = {k: v for k, v in schedule.items() if k in CRON_FIELDS}
        return CronTrigger(timezone=self._timezone, **cron_kwargs)

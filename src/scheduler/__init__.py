"""Recurring task system: models, scheduling, and the default jobs."""

from src.scheduler.engine import SchedulerEngine
from src.scheduler.jobs import ProactiveMessenger, build_default_tasks
from src.scheduler.models import RecurringTask

__all__ = [
    "RecurringTask",
    "SchedulerEngine",
    "ProactiveMessenger",
    "build_default_tasks",
]

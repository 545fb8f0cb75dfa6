"""Tests for SchedulerEngine: APScheduler lifecycle."""

from unittest.mock import AsyncMock

import pytest
from apscheduler.triggers.cron import CronTrigger

from src.scheduler.engine import SchedulerEngine
from src.scheduler.models import RecurringTask


def _make_task(name: str = "task1", schedule: dict | None = None, callback=None) -> RecurringTask:
    return RecurringTask(
        name=name,
        schedule=schedule or {"cron": "0 9 * * *"},
        callback=callback or AsyncMock(),
        description="Test task",
    )


@pytest.fixture
def engine() -> SchedulerEngine:
    return SchedulerEngine(timezone="Asia/Kolkata")


# -- RecurringTask -------------------------------------------------------------


def test_task_requires_schedule() -> None:
    with pytest.raises(ValueError, match="no usable schedule"):
        RecurringTask(name="bad", schedule={"foo": 1}, callback=AsyncMock())


def test_task_defaults() -> None:
    task = _make_task()
    assert task.last_run_at is None
    assert task.description == "Test task"


# -- Lifecycle -----------------------------------------------------------------


async def test_start_and_stop(engine: SchedulerEngine) -> None:
    await engine.start()
    assert engine.running is True

    await engine.stop()
    assert engine.running is False


async def test_stop_when_not_running(engine: SchedulerEngine) -> None:
    # Should not raise
    await engine.stop()


async def test_start_schedules_tasks() -> None:
    engine = SchedulerEngine(tasks=[_make_task("t1"), _make_task("t2")], timezone="UTC")
    await engine.start()
    try:
        job_ids = {j.id for j in engine._scheduler.get_jobs()}
        assert job_ids == {"t1", "t2"}
    finally:
        await engine.stop()


# -- add_task ------------------------------------------------------------------


async def test_add_task_while_running(engine: SchedulerEngine) -> None:
    await engine.start()
    try:
        engine.add_task(_make_task("late"))
        assert engine._scheduler.get_job("late") is not None
        assert [t.name for t in engine.tasks] == ["late"]
    finally:
        await engine.stop()


def test_add_task_before_start(engine: SchedulerEngine) -> None:
    engine.add_task(_make_task("early"))
    assert [t.name for t in engine.tasks] == ["early"]


def test_add_task_replaces_same_name(engine: SchedulerEngine) -> None:
    engine.add_task(_make_task("dup", {"cron": "0 9 * * *"}))
    engine.add_task(_make_task("dup", {"hour": 10, "minute": 0}))
    [task] = engine.tasks
    assert task.schedule == {"hour": 10, "minute": 0}


# -- run_now / _run_task -------------------------------------------------------


async def test_run_now_invokes_callback(engine: SchedulerEngine) -> None:
    callback = AsyncMock()
    task = _make_task("t1", callback=callback)
    engine.add_task(task)

    assert await engine.run_now("t1") is True

    callback.assert_awaited_once_with()
    assert task.last_run_at is not None


async def test_run_now_unknown(engine: SchedulerEngine) -> None:
    assert await engine.run_now("nope") is False


async def test_failing_task_is_contained(engine: SchedulerEngine) -> None:
    task = _make_task("boom", callback=AsyncMock(side_effect=RuntimeError("x")))
    engine.add_task(task)

    await engine._run_task("boom")

    assert task.last_run_at is not None


async def test_run_task_missing(engine: SchedulerEngine) -> None:
    # Should not raise
    await engine._run_task("ghost")


# -- Trigger building ----------------------------------------------------------


def test_build_trigger_cron_string(engine: SchedulerEngine) -> None:
    trigger = engine._build_trigger(_make_task(schedule={"cron": "0 */4 * * *"}))
    assert isinstance(trigger, CronTrigger)


def test_build_trigger_cron_fields(engine: SchedulerEngine) -> None:
    trigger = engine._build_trigger(
        _make_task(schedule={"hour": 8, "minute": 0, "ignored": "x"})
    )
    assert isinstance(trigger, CronTrigger)
    fields = {f.name: str(f) for f in trigger.fields}
    assert fields["hour"] == "8"
    assert fields["minute"] == "0"

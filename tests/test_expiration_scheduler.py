import asyncio
from datetime import timedelta

import pytest

from conftest import FrozenClock, task_request

from taskdesk.constants.constants import TaskStatus
from taskdesk.models.base import utc_now
from taskdesk.services.TaskLifecycleService import TaskLifecycleService
from taskdesk.utils.schedulers import expire_overdue_tasks


async def test_run_expiration_sweep_uses_wall_clock(db_manager, monkeypatch):
    # Data created a day ago, so the real clock is well past the deadline.
    yesterday = FrozenClock(utc_now() - timedelta(days=1))
    async with db_manager.session_factory() as session:
        service = TaskLifecycleService(session, clock=yesterday)
        employee = await service.create_employee("Abena", None, "abena@example.com")
        task = await service.assign_task(employee.employee_id, task_request(yesterday))

    monkeypatch.setattr(expire_overdue_tasks, "session_manager", db_manager)
    assert await expire_overdue_tasks.run_expiration_sweep() == 1
    assert await expire_overdue_tasks.run_expiration_sweep() == 0

    async with db_manager.session_factory() as session:
        stored = await TaskLifecycleService(session).get_task(task.task_id)
    assert stored.status == TaskStatus.failed
    assert stored.is_failed


async def test_scheduler_survives_a_failed_pass(monkeypatch):
    calls = []
    enough = asyncio.Event()

    async def flaky_sweep():
        calls.append(len(calls))
        if len(calls) == 1:
            raise RuntimeError("database unavailable")
        if len(calls) >= 3:
            enough.set()
        return 0

    monkeypatch.setattr(expire_overdue_tasks, "run_expiration_sweep", flaky_sweep)
    runner = asyncio.create_task(
        expire_overdue_tasks.expire_overdue_tasks_scheduler(interval_seconds=0.01)
    )
    await asyncio.wait_for(enough.wait(), timeout=2)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner
    assert len(calls) >= 3

"""
Pytest configuration and shared fixtures for TaskDesk tests.

- Async tests run through pytest-asyncio (auto mode enabled in pyproject.toml)
- Every test gets its own SQLite file database under ``tmp_path``
- Time is controlled through ``FrozenClock``
"""

from datetime import datetime, timedelta

import pytest

from taskdesk.core.database import DatabaseSessionManager
from taskdesk.schemas.taskSchema import DocumentMetadata, TaskCreateRequest
from taskdesk.services.TaskLifecycleService import TaskLifecycleService
from taskdesk.utils.clock import Clock

START = datetime(2026, 3, 2, 9, 0, 0)


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest.fixture
async def db_manager(tmp_path):
    """Session manager bound to a fresh SQLite database."""
    manager = DatabaseSessionManager()
    await manager.init(f"sqlite+aiosqlite:///{tmp_path / 'taskdesk.db'}")
    yield manager
    await manager.close()


@pytest.fixture
async def db(db_manager):
    async with db_manager.session_factory() as session:
        yield session


@pytest.fixture
def service(db, clock) -> TaskLifecycleService:
    return TaskLifecycleService(db, clock=clock)


@pytest.fixture
async def employee(service):
    return await service.create_employee("Ama", "Mensah", "ama.mensah@example.com")


def task_request(clock: FrozenClock, hours: float = 1, **overrides) -> TaskCreateRequest:
    data = {
        "title": "Prepare sprint demo",
        "description": "Slides and a short recording of the new dashboard",
        "category": "Presentation",
        "deadline": clock.now() + timedelta(hours=hours),
    }
    data.update(overrides)
    return TaskCreateRequest(**data)


def document(name: str = "report.pdf", mime_type: str = "application/pdf") -> DocumentMetadata:
    return DocumentMetadata(
        file_name=name,
        file_path=f"/uploads/{name}",
        file_size=2048,
        mime_type=mime_type,
    )


def assert_exclusive(task) -> None:
    """Exactly one lifecycle flag is set."""
    flags = [task.is_new, task.is_active, task.is_completed, task.is_failed]
    assert sum(bool(flag) for flag in flags) == 1, flags

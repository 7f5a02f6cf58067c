"""Clock used by the task lifecycle service, injectable for tests."""

from abc import ABC, abstractmethod
from datetime import datetime

from taskdesk.models.base import utc_now


class Clock(ABC):
    """Source of the current time as naive UTC."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return utc_now()


def get_clock() -> Clock:
    """FastAPI dependency returning the wall clock."""
    return SystemClock()

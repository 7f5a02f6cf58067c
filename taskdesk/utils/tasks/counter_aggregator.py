"""Per-employee task counters recomputed from task flags."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Iterable

from taskdesk.constants.constants import VerificationStatus
from taskdesk.utils.tasks.state_engine import TaskFlags, TaskSnapshot


@dataclass(frozen=True)
class TaskCounts:
    """
    Bucketed task counts for one employee.

    ``new_task``, ``active``, ``completed`` and ``failed`` are exclusive and
    always sum to the number of tasks. ``pending_verification`` is the part of
    ``active`` currently awaiting admin review and is not part of that sum.
    """

    new_task: int = 0
    active: int = 0
    completed: int = 0
    failed: int = 0
    pending_verification: int = 0

    @property
    def total(self) -> int:
        return self.new_task + self.active + self.completed + self.failed

    @property
    def completion_rate(self) -> float:
        """Completed share of all tasks as a percentage."""
        if not self.total:
            return 0.0
        return round(self.completed / self.total * 100, 1)

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def count_bucket(flags: TaskFlags) -> str:
    """Exclusive bucket for a flag set: completed > failed > active > new_task."""
    if flags.is_completed:
        return "completed"
    if flags.is_failed:
        return "failed"
    if flags.is_active:
        return "active"
    return "new_task"


def aggregate_task_counts(tasks: Iterable[TaskSnapshot]) -> TaskCounts:
    """Recompute an employee's counts from the authoritative task list."""
    buckets = {"new_task": 0, "active": 0, "completed": 0, "failed": 0}
    pending = 0
    for task in tasks:
        bucket = count_bucket(task.flags)
        buckets[bucket] += 1
        if bucket == "active" and task.verification_status == VerificationStatus.pending:
            pending += 1
    return TaskCounts(pending_verification=pending, **buckets)

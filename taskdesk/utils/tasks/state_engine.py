"""Task state resolution.

A task carries four lifecycle flags (``is_new``, ``is_active``,
``is_completed``, ``is_failed``) of which exactly one must be true, plus an
orthogonal verification status. Raw signals coming from storage can be stale
(deadline passed since the last write) or corrupt (several flags set). The
functions here turn those signals into the single correct state, using one
priority order:

1. completed wins over everything, the task is terminal.
2. failed is terminal too, its flags never change again.
3. a pending review holds the task, even past its deadline.
4. a passed deadline fails the task and marks verification expired.
5. an accepted task stays active (``rejected`` when its last review failed).
6. an unaccepted task stays new.
7. anything else falls back to new.

Nothing in this module touches the database or the clock; callers pass
``now`` in and persist the result themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from taskdesk.constants.constants import TaskStatus, VerificationStatus


@dataclass(frozen=True)
class TaskFlags:
    """The four lifecycle flags of a task."""

    is_new: bool = False
    is_active: bool = False
    is_completed: bool = False
    is_failed: bool = False

    @property
    def true_count(self) -> int:
        return sum((self.is_new, self.is_active, self.is_completed, self.is_failed))

    @property
    def is_exclusive(self) -> bool:
        """Exactly one flag is set."""
        return self.true_count == 1

    @property
    def is_terminal(self) -> bool:
        return self.is_completed or self.is_failed


NEW_FLAGS = TaskFlags(is_new=True)
ACTIVE_FLAGS = TaskFlags(is_active=True)
COMPLETED_FLAGS = TaskFlags(is_completed=True)
FAILED_FLAGS = TaskFlags(is_failed=True)


@dataclass(frozen=True)
class TaskSnapshot:
    """Immutable view of the signals that decide a task's state."""

    flags: TaskFlags
    verification_status: VerificationStatus
    deadline: datetime
    has_evidence: bool = False


@dataclass(frozen=True)
class TaskState:
    """Resolved state: exclusive flags, verification status and derived label."""

    flags: TaskFlags
    verification_status: VerificationStatus
    status: TaskStatus


def is_expired(deadline: datetime, now: datetime) -> bool:
    """Strict deadline check, no grace window."""
    return now > deadline


def status_label(flags: TaskFlags, verification_status: VerificationStatus) -> TaskStatus:
    """Label an already exclusive flag set."""
    if flags.is_completed:
        return TaskStatus.completed
    if flags.is_failed:
        return TaskStatus.failed
    if verification_status == VerificationStatus.pending:
        return TaskStatus.pending_verification
    if flags.is_active:
        if verification_status == VerificationStatus.rejected:
            return TaskStatus.rejected
        return TaskStatus.active
    return TaskStatus.new


def _state(flags: TaskFlags, verification_status: VerificationStatus) -> TaskState:
    return TaskState(
        flags=flags,
        verification_status=verification_status,
        status=status_label(flags, verification_status),
    )


def resolve_task_state(snapshot: TaskSnapshot, now: datetime) -> TaskState:
    """Compute the single correct state for a task at ``now``."""
    flags = snapshot.flags
    verification = VerificationStatus(snapshot.verification_status)

    if flags.is_completed:
        return _state(COMPLETED_FLAGS, verification)

    if flags.is_failed:
        return _state(FAILED_FLAGS, verification)

    # Review in progress; the deadline no longer applies.
    if verification == VerificationStatus.pending:
        return _state(ACTIVE_FLAGS, verification)

    if is_expired(snapshot.deadline, now):
        return _state(FAILED_FLAGS, VerificationStatus.expired)

    if flags.is_active:
        return _state(ACTIVE_FLAGS, verification)

    # Unaccepted tasks and flag sets with nothing set both resolve to new.
    return _state(NEW_FLAGS, verification)


def derive_status(
    flags: TaskFlags,
    verification_status: VerificationStatus,
    deadline: datetime,
    now: datetime,
) -> TaskStatus:
    """The derived status label every component displays and filters on."""
    snapshot = TaskSnapshot(flags=flags, verification_status=verification_status, deadline=deadline)
    return resolve_task_state(snapshot, now).status


def target_state(target: TaskStatus) -> TaskState:
    """State a task lands in when a caller-requested transition to ``target`` succeeds."""
    target = TaskStatus(target)
    if target == TaskStatus.new:
        return _state(NEW_FLAGS, VerificationStatus.none)
    if target == TaskStatus.active:
        return _state(ACTIVE_FLAGS, VerificationStatus.none)
    if target == TaskStatus.pending_verification:
        return _state(ACTIVE_FLAGS, VerificationStatus.pending)
    if target == TaskStatus.rejected:
        return _state(ACTIVE_FLAGS, VerificationStatus.rejected)
    if target == TaskStatus.completed:
        return _state(COMPLETED_FLAGS, VerificationStatus.approved)
    return _state(FAILED_FLAGS, VerificationStatus.expired)


def needs_state_update(
    snapshot: TaskSnapshot,
    stored_status: TaskStatus,
    now: datetime,
) -> bool:
    """Whether stored flags, verification or label differ from the resolved state."""
    resolved = resolve_task_state(snapshot, now)
    return (
        resolved.flags != snapshot.flags
        or resolved.verification_status != snapshot.verification_status
        or resolved.status != stored_status
    )

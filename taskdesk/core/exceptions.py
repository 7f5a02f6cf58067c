"""Typed errors raised by the task lifecycle core.

Every error carries a machine readable ``code``, a human readable ``message``
and the HTTP status the API layer answers with. The core never handles these
itself; callers decide how to surface them.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from taskdesk.constants.constants import TaskStatus, VerificationStatus


class TaskLifecycleError(Exception):
    """Base class for all task lifecycle failures."""

    status_code: int = 400
    code: str = "TASK_LIFECYCLE_ERROR"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for an API response body."""
        return {"detail": self.message, "code": self.code, **self.context}


class InvalidTransition(TaskLifecycleError):
    """Requested status change is not in the legal transition table."""

    status_code = 409
    code = "INVALID_TRANSITION"

    def __init__(self, current: TaskStatus, target: TaskStatus, reason: Optional[str] = None):
        self.current = TaskStatus(current)
        self.target = TaskStatus(target)
        super().__init__(
            reason or f"Invalid status transition from {self.current.value} to {self.target.value}",
            current_status=self.current.value,
            requested_status=self.target.value,
        )


class TaskExpired(TaskLifecycleError):
    """Action attempted on a task whose deadline has passed."""

    status_code = 409
    code = "TASK_EXPIRED"

    def __init__(self, task_id: str, deadline: datetime):
        self.task_id = task_id
        self.deadline = deadline
        super().__init__(
            "Cannot act on an expired task",
            task_id=task_id,
            deadline=deadline.isoformat(),
        )


class NoEvidence(TaskLifecycleError):
    """Submission requested without any attached document."""

    status_code = 400
    code = "NO_EVIDENCE"

    def __init__(self, task_id: Optional[str] = None):
        self.task_id = task_id
        super().__init__(
            "Cannot submit for verification without a document",
            task_id=task_id,
        )


class NotPendingReview(TaskLifecycleError):
    """Review action on a task that is not awaiting review."""

    status_code = 409
    code = "NOT_PENDING_REVIEW"

    def __init__(self, task_id: Optional[str], verification_status: VerificationStatus):
        self.task_id = task_id
        self.verification_status = VerificationStatus(verification_status)
        super().__init__(
            "Task is not pending verification",
            task_id=task_id,
            current_verification_status=self.verification_status.value,
        )


class InvalidDeadline(TaskLifecycleError):
    """Deadline does not leave the creation grace window."""

    status_code = 400
    code = "INVALID_DEADLINE"

    def __init__(self, deadline: datetime, earliest: datetime):
        self.deadline = deadline
        self.earliest = earliest
        super().__init__(
            "End date/time must be slightly after current time",
            deadline=deadline.isoformat(),
            earliest_allowed=earliest.isoformat(),
        )


class TaskNotFound(TaskLifecycleError):
    status_code = 404
    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__("Task not found", task_id=task_id)


class EmployeeNotFound(TaskLifecycleError):
    status_code = 404
    code = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__("Employee not found", employee_id=employee_id)


class DuplicateEmployee(TaskLifecycleError):
    status_code = 409
    code = "DUPLICATE_EMPLOYEE"

    def __init__(self, email: str):
        self.email = email
        super().__init__("An employee with this email already exists", email=email)


class ConcurrentModification(TaskLifecycleError):
    """Optimistic version check failed while committing an employee's tasks."""

    status_code = 409
    code = "CONCURRENT_MODIFICATION"

    def __init__(self, employee_id: str, expected_version: Optional[int] = None):
        self.employee_id = employee_id
        self.expected_version = expected_version
        super().__init__(
            "The employee's tasks were modified concurrently, please retry",
            employee_id=employee_id,
            expected_version=expected_version,
        )


class PersistenceFailure(TaskLifecycleError):
    """Storage is unavailable or rejected the write."""

    status_code = 503
    code = "PERSISTENCE_FAILURE"

    def __init__(self, message: str = "Task storage is unavailable"):
        super().__init__(message, retryable=True)

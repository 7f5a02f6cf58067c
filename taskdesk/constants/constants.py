"""Constants for task categories, lifecycle statuses, review decisions and evidence uploads."""

from enum import Enum


class TaskCategory(str, Enum):
    """Enumeration of categories an admin can assign a task to."""

    design = "Design"
    development = "Development"
    meeting = "Meeting"
    qa = "QA"
    documentation = "Documentation"
    devops = "DevOps"
    presentation = "Presentation"
    support = "Support"


class VerificationStatus(str, Enum):
    """Enumeration of admin review states for submitted evidence."""

    none = "none"
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    expired = "expired"


class TaskStatus(str, Enum):
    """Enumeration of derived task statuses shown to admins and employees."""

    new = "new"
    active = "active"
    pending_verification = "pendingVerification"
    completed = "completed"
    failed = "failed"
    rejected = "rejected"


class ReviewDecision(str, Enum):
    """Enumeration of admin decisions on a submission."""

    approve = "approve"
    reject = "reject"


TERMINAL_STATUSES = frozenset({TaskStatus.completed, TaskStatus.failed})

ALLOWED_TRANSITIONS = {
    TaskStatus.new: frozenset({TaskStatus.active, TaskStatus.failed}),
    TaskStatus.active: frozenset({TaskStatus.pending_verification, TaskStatus.failed}),
    TaskStatus.pending_verification: frozenset({
        TaskStatus.completed,
        TaskStatus.rejected,
        TaskStatus.failed,
    }),
    TaskStatus.rejected: frozenset({TaskStatus.pending_verification, TaskStatus.failed}),
    TaskStatus.completed: frozenset(),
    TaskStatus.failed: frozenset(),
}

DEFAULT_REJECTION_REASON = "No reason provided"
SYSTEM_REVIEWER = "system"

MAX_DOCUMENT_SIZE = 10 * 1024 * 1024  # 10MB

ALLOWED_DOCUMENT_MIME_TYPES = [
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
    "image/jpeg",
    "image/png",
    "image/gif",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
]

TASK_CATEGORIES = [
    {"id": category.value, "name": category.value}
    for category in TaskCategory
]

"""Legal-transition gate for caller-requested status changes.

Time driven changes (a deadline passing) go through the state engine only;
this gate is for what users and admins ask for.
"""

from typing import Optional

from taskdesk.constants.constants import ALLOWED_TRANSITIONS, TaskStatus, VerificationStatus
from taskdesk.core.exceptions import InvalidTransition, NoEvidence, NotPendingReview


def is_valid_transition(current: TaskStatus, target: TaskStatus) -> bool:
    """Check the transition table only, without the extra guards."""
    current = TaskStatus(current)
    target = TaskStatus(target)
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def validate_transition(
    current: TaskStatus,
    target: TaskStatus,
    *,
    verification_status: VerificationStatus,
    evidence_count: int,
    task_id: Optional[str] = None,
) -> None:
    """
    Raise if ``current`` may not move to ``target``.

    Args:
        current: derived status the task has now.
        target: derived status the caller asks for.
        verification_status: review state of the task.
        evidence_count: documents attached once the change is applied.
        task_id: only used to enrich error context.

    Raises:
        InvalidTransition: the pair is not in the legal table, or the task
            is completed and ``failed`` was requested.
        NotPendingReview: ``completed`` requested without a pending review.
        NoEvidence: ``pendingVerification`` requested with no document.
    """
    current = TaskStatus(current)
    target = TaskStatus(target)

    if current == TaskStatus.completed and target == TaskStatus.failed:
        raise InvalidTransition(current, target, reason="Completed tasks cannot be marked as failed")

    if current == target:
        return

    if not is_valid_transition(current, target):
        raise InvalidTransition(current, target)

    if target == TaskStatus.completed and verification_status != VerificationStatus.pending:
        raise NotPendingReview(task_id, verification_status)

    if target == TaskStatus.pending_verification and evidence_count < 1:
        raise NoEvidence(task_id)

import pytest

from taskdesk.constants.constants import TaskStatus, VerificationStatus
from taskdesk.core.exceptions import InvalidTransition, NoEvidence, NotPendingReview
from taskdesk.utils.tasks.transition_validator import is_valid_transition, validate_transition


def check(current, target, verification=VerificationStatus.none, evidence=0):
    validate_transition(
        current,
        target,
        verification_status=verification,
        evidence_count=evidence,
        task_id="task-1",
    )


@pytest.mark.parametrize(
    "current, target",
    [
        (TaskStatus.new, TaskStatus.active),
        (TaskStatus.new, TaskStatus.failed),
        (TaskStatus.active, TaskStatus.pending_verification),
        (TaskStatus.active, TaskStatus.failed),
        (TaskStatus.pending_verification, TaskStatus.completed),
        (TaskStatus.pending_verification, TaskStatus.rejected),
        (TaskStatus.pending_verification, TaskStatus.failed),
        (TaskStatus.rejected, TaskStatus.pending_verification),
        (TaskStatus.rejected, TaskStatus.failed),
    ],
)
def test_legal_pairs(current, target):
    assert is_valid_transition(current, target)


@pytest.mark.parametrize(
    "current, target",
    [
        (TaskStatus.new, TaskStatus.completed),
        (TaskStatus.new, TaskStatus.pending_verification),
        (TaskStatus.active, TaskStatus.new),
        (TaskStatus.active, TaskStatus.completed),
        (TaskStatus.completed, TaskStatus.active),
        (TaskStatus.failed, TaskStatus.active),
        (TaskStatus.failed, TaskStatus.completed),
    ],
)
def test_illegal_pairs_raise(current, target):
    assert not is_valid_transition(current, target)
    with pytest.raises(InvalidTransition) as exc_info:
        check(current, target, VerificationStatus.pending, evidence=1)
    assert exc_info.value.current == current
    assert exc_info.value.target == target


def test_same_status_is_allowed():
    check(TaskStatus.active, TaskStatus.active)
    check(TaskStatus.failed, TaskStatus.failed)


def test_completed_to_failed_is_rejected_with_reason():
    with pytest.raises(InvalidTransition) as exc_info:
        check(TaskStatus.completed, TaskStatus.failed)
    assert "cannot be marked as failed" in exc_info.value.message


def test_completion_requires_pending_review():
    with pytest.raises(NotPendingReview):
        check(TaskStatus.pending_verification, TaskStatus.completed, VerificationStatus.rejected, 1)
    check(TaskStatus.pending_verification, TaskStatus.completed, VerificationStatus.pending, 1)


def test_submission_requires_evidence():
    with pytest.raises(NoEvidence) as exc_info:
        check(TaskStatus.active, TaskStatus.pending_verification, evidence=0)
    assert exc_info.value.task_id == "task-1"
    check(TaskStatus.active, TaskStatus.pending_verification, evidence=1)


def test_accepts_raw_string_statuses():
    check("new", "active")
    with pytest.raises(InvalidTransition):
        check("completed", "new")

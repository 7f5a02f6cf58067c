"""Task lifecycle router for the TaskDesk system."""

from typing import List
from fastapi import APIRouter, Depends, Request, status

from taskdesk.constants.constants import TASK_CATEGORIES
from taskdesk.core.config import settings
from taskdesk.core.limiter import limiter
from taskdesk.schemas.taskSchema import (
    EvidenceSubmissionRequest,
    PendingVerificationItem,
    SweepResponse,
    TaskFailRequest,
    TaskRecord,
    TaskReviewRequest,
)
from taskdesk.services.TaskLifecycleService import TaskLifecycleService, get_task_service

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"]
)


@router.get("/pending-verification", response_model=List[PendingVerificationItem])
async def get_pending_verification_tasks(
    service: TaskLifecycleService = Depends(get_task_service),
):
    """
    Get all tasks awaiting an admin decision, oldest submission first.
    """
    return await service.list_pending_verification()


@router.post("/check-expired", response_model=SweepResponse)
@limiter.limit(settings.SWEEP_RATE_LIMIT)
async def check_expired_tasks(
    request: Request,
    service: TaskLifecycleService = Depends(get_task_service),
):
    """
    Fail every open task whose deadline has passed.
    Tasks awaiting review are left alone.
    """
    result = await service.sweep_expired()
    return SweepResponse(
        updated_count=result.updated_count,
        message=f"Updated {result.updated_count} expired tasks",
    )


@router.get("/categories/list")
async def get_task_categories():
    """
    Get available task categories.
    """
    return {"categories": TASK_CATEGORIES}


@router.get("/{task_id}", response_model=TaskRecord)
async def get_task_details(
    task_id: str,
    service: TaskLifecycleService = Depends(get_task_service),
):
    """
    Get detailed information about a specific task, status evaluated now.
    """
    return await service.get_task(task_id)


@router.post("/{task_id}/accept", response_model=TaskRecord)
async def accept_task(
    task_id: str,
    service: TaskLifecycleService = Depends(get_task_service),
):
    """
    Accept a new task. Fails once the deadline has passed.
    """
    return await service.accept_task(task_id)


@router.post("/{task_id}/documents", response_model=TaskRecord, status_code=status.HTTP_201_CREATED)
async def submit_task_evidence(
    task_id: str,
    submission: EvidenceSubmissionRequest,
    service: TaskLifecycleService = Depends(get_task_service),
):
    """
    Attach uploaded document metadata and send the task for verification.
    Resubmitting after a rejection keeps the earlier documents.
    """
    return await service.submit_evidence(task_id, submission.documents)


@router.post("/{task_id}/review", response_model=TaskRecord)
async def review_task(
    task_id: str,
    review: TaskReviewRequest,
    service: TaskLifecycleService = Depends(get_task_service),
):
    """
    Approve or reject the evidence of a task pending verification.
    Rejected tasks go back to active so the employee can resubmit.
    """
    return await service.review_task(
        task_id,
        review.decision,
        note=review.note,
        reviewer_id=review.reviewer_id,
    )


@router.post("/{task_id}/fail", response_model=TaskRecord)
async def fail_task(
    task_id: str,
    request_data: TaskFailRequest,
    service: TaskLifecycleService = Depends(get_task_service),
):
    """
    Mark an open task failed. Completed tasks cannot be failed.
    """
    return await service.fail_task(task_id, note=request_data.note)

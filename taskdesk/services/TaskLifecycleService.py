"""Task lifecycle operations: assign, accept, submit evidence, review, fail, sweep."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import partial
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from taskdesk.constants.constants import (
    DEFAULT_REJECTION_REASON,
    SYSTEM_REVIEWER,
    ReviewDecision,
    TaskStatus,
    VerificationStatus,
)
from taskdesk.core.config import settings
from taskdesk.core.database import aget_db
from taskdesk.core.exceptions import (
    ConcurrentModification,
    InvalidDeadline,
    InvalidTransition,
    NoEvidence,
    NotPendingReview,
    TaskExpired,
)
from taskdesk.models.document import SubmittedDocument
from taskdesk.models.employee import Employee
from taskdesk.models.task import Task
from taskdesk.schemas.employeeSchema import EmployeeResponse, EmployeeSummary, TaskCountsResponse
from taskdesk.schemas.taskSchema import (
    DocumentMetadata,
    PendingVerificationItem,
    TaskCreateRequest,
    TaskRecord,
)
from taskdesk.services.TaskRepository import TaskRepository
from taskdesk.utils.clock import Clock, SystemClock, get_clock
from taskdesk.utils.tasks.counter_aggregator import TaskCounts, aggregate_task_counts
from taskdesk.utils.tasks.state_engine import (
    TaskState,
    derive_status,
    needs_state_update,
    resolve_task_state,
    target_state,
)
from taskdesk.utils.tasks.transition_validator import validate_transition

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SweepResult:
    updated_count: int


@dataclass(frozen=True)
class RepairResult:
    employees_processed: int
    employees_updated: int
    tasks_fixed: int


class TaskLifecycleService:
    """
    Runs every task mutation as an atomic read-modify-write on the owning
    employee's task collection.

    Each attempt loads the employee, resolves the task's current state against
    the clock, validates the requested transition, applies it, recomputes the
    employee's counters and commits under the employee version check. A
    version conflict rolls back and retries up to ``max_retries`` attempts;
    every other error is raised to the caller unchanged.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Optional[Clock] = None,
        max_retries: Optional[int] = None,
        grace_seconds: Optional[int] = None,
    ):
        self.db = db
        self.repository = TaskRepository(db)
        self.clock = clock or SystemClock()
        self.max_retries = settings.MAX_TRANSITION_RETRIES if max_retries is None else max_retries
        self.grace = timedelta(
            seconds=settings.TASK_GRACE_SECONDS if grace_seconds is None else grace_seconds
        )

    # ------------------------------
    # Transaction plumbing
    # ------------------------------

    async def _run_atomic(self, operation: Callable[[], Awaitable[T]]) -> T:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=0.05, max=0.5),
            retry=retry_if_exception_type(ConcurrentModification),
            reraise=True,
        ):
            with attempt:
                try:
                    result = await operation()
                    await self.db.commit()
                    return result
                except Exception:
                    await self.db.rollback()
                    raise

    async def _persist(self, employee: Employee) -> TaskCounts:
        counts = aggregate_task_counts(task.snapshot() for task in employee.tasks)
        await self.repository.save_task_and_counts(employee, counts)
        return counts

    async def _mutate_task(self, task_id: str, mutation: Callable[[Task, datetime], None]) -> TaskRecord:
        async def attempt() -> TaskRecord:
            employee, task = await self.repository.load_task_with_owner(task_id)
            mutation(task, self.clock.now())
            await self._persist(employee)
            return TaskRecord.model_validate(task)

        return await self._run_atomic(attempt)

    def _current_state(self, task: Task, now: datetime) -> TaskState:
        """Resolve the task against the clock; raise if the deadline just expired it."""
        state = resolve_task_state(task.snapshot(), now)
        if state.status == TaskStatus.failed and not task.is_failed:
            raise TaskExpired(task.task_id, task.deadline)
        return state

    # ------------------------------
    # Admin: assignment and directory
    # ------------------------------

    async def create_employee(self, first_name: str, last_name: Optional[str], email: str) -> EmployeeResponse:
        async def attempt() -> EmployeeResponse:
            employee = await self.repository.add_employee(first_name, last_name, email)
            return EmployeeResponse.model_validate(employee)

        return await self._run_atomic(attempt)

    async def assign_task(self, employee_id: str, task_data: TaskCreateRequest) -> TaskRecord:
        """Create a task in the new state for an employee."""
        async def attempt() -> TaskRecord:
            employee = await self.repository.load_employee(employee_id)
            now = self.clock.now()
            earliest = now + self.grace
            if task_data.deadline <= earliest:
                raise InvalidDeadline(task_data.deadline, earliest)

            task = Task(
                task_id=str(uuid.uuid4()),
                employee_id=employee.employee_id,
                title=task_data.title,
                description=task_data.description,
                category=task_data.category,
                assigned_at=now,
                deadline=task_data.deadline,
                documents=[],
            )
            task.apply_state(target_state(TaskStatus.new))
            employee.tasks.append(task)
            await self._persist(employee)
            return TaskRecord.model_validate(task)

        record = await self._run_atomic(attempt)
        logger.info(f"Task {record.task_id} assigned to employee {employee_id}")
        return record

    # ------------------------------
    # Employee actions
    # ------------------------------

    async def accept_task(self, task_id: str) -> TaskRecord:
        """new -> active."""
        def accept(task: Task, now: datetime) -> None:
            state = self._current_state(task, now)
            if state.status != TaskStatus.new:
                raise InvalidTransition(state.status, TaskStatus.active)
            validate_transition(
                state.status,
                TaskStatus.active,
                verification_status=state.verification_status,
                evidence_count=len(task.documents),
                task_id=task.task_id,
            )
            task.apply_state(target_state(TaskStatus.active))
            task.accepted_at = now

        return await self._mutate_task(task_id, accept)

    async def submit_evidence(self, task_id: str, documents: Sequence[DocumentMetadata]) -> TaskRecord:
        """
        Attach evidence and move the task to pending verification.

        Works from ``active`` and, as a resubmission, from ``rejected``; prior
        documents are kept and the new ones appended after them.
        """
        if not documents:
            raise NoEvidence(task_id)

        def submit(task: Task, now: datetime) -> None:
            state = self._current_state(task, now)
            validate_transition(
                state.status,
                TaskStatus.pending_verification,
                verification_status=state.verification_status,
                evidence_count=len(task.documents) + len(documents),
                task_id=task.task_id,
            )
            for metadata in documents:
                self.repository.add_document(
                    task,
                    SubmittedDocument(
                        document_id=str(uuid.uuid4()),
                        file_name=metadata.file_name,
                        original_name=metadata.original_name or metadata.file_name,
                        file_path=metadata.file_path,
                        file_size=metadata.file_size,
                        mime_type=metadata.mime_type,
                        uploaded_at=now,
                        uploaded_by=metadata.uploaded_by or task.employee_id,
                    ),
                )
            task.apply_state(target_state(TaskStatus.pending_verification))
            task.submitted_at = now

        return await self._mutate_task(task_id, submit)

    # ------------------------------
    # Admin actions
    # ------------------------------

    async def review_task(
        self,
        task_id: str,
        decision: ReviewDecision,
        note: Optional[str] = None,
        reviewer_id: Optional[str] = None,
    ) -> TaskRecord:
        """Approve (-> completed) or reject (-> active, resubmittable) a submission."""
        decision = ReviewDecision(decision)
        reviewer = reviewer_id or SYSTEM_REVIEWER

        def review(task: Task, now: datetime) -> None:
            if task.verification_status != VerificationStatus.pending:
                raise NotPendingReview(task.task_id, task.verification_status)
            state = resolve_task_state(task.snapshot(), now)
            target = TaskStatus.completed if decision == ReviewDecision.approve else TaskStatus.rejected
            validate_transition(
                state.status,
                target,
                verification_status=state.verification_status,
                evidence_count=len(task.documents),
                task_id=task.task_id,
            )
            task.apply_state(target_state(target))
            task.verification_note = note
            if decision == ReviewDecision.approve:
                task.verified_at = now
                task.verified_by = reviewer
            else:
                task.rejected_at = now
                task.rejected_by = reviewer
                task.rejection_reason = note or DEFAULT_REJECTION_REASON

        record = await self._mutate_task(task_id, review)
        logger.info(f"Task {task_id} {decision.value}d by {reviewer}")
        return record

    async def fail_task(self, task_id: str, note: Optional[str] = None) -> TaskRecord:
        """Mark a non-terminal task failed."""
        def fail(task: Task, now: datetime) -> None:
            state = resolve_task_state(task.snapshot(), now)
            validate_transition(
                state.status,
                TaskStatus.failed,
                verification_status=state.verification_status,
                evidence_count=len(task.documents),
                task_id=task.task_id,
            )
            if task.is_failed:
                return
            task.apply_state(target_state(TaskStatus.failed))
            task.failed_at = now
            task.verification_note = note

        return await self._mutate_task(task_id, fail)

    # ------------------------------
    # Batch jobs
    # ------------------------------

    async def _expire_employee_tasks(self, employee_id: str) -> int:
        employee = await self.repository.load_employee(employee_id)
        now = self.clock.now()
        expired = 0
        for task in employee.tasks:
            if task.is_completed or task.is_failed:
                continue
            state = resolve_task_state(task.snapshot(), now)
            if state.status == TaskStatus.failed:
                task.apply_state(state)
                task.failed_at = now
                expired += 1
        if expired:
            await self._persist(employee)
        return expired

    async def sweep_expired(self) -> SweepResult:
        """Fail every non-terminal task whose deadline passed; idempotent."""
        employee_ids = await self.repository.list_employee_ids_with_overdue_tasks(self.clock.now())
        updated = 0
        for employee_id in employee_ids:
            updated += await self._run_atomic(partial(self._expire_employee_tasks, employee_id))
        if updated:
            logger.info(f"Expired {updated} overdue tasks across {len(employee_ids)} employees")
        return SweepResult(updated_count=updated)

    async def _repair_employee(self, employee_id: str) -> int:
        employee = await self.repository.load_employee(employee_id)
        now = self.clock.now()
        fixed = 0
        for task in employee.tasks:
            snapshot = task.snapshot()
            if needs_state_update(snapshot, task.status, now):
                state = resolve_task_state(snapshot, now)
                if state.flags.is_failed and not task.is_failed:
                    task.failed_at = now
                task.apply_state(state)
                fixed += 1
        counts = aggregate_task_counts(task.snapshot() for task in employee.tasks)
        if fixed or counts != employee.task_counts:
            await self.repository.save_task_and_counts(employee, counts)
        return fixed

    async def repair_task_states(self) -> RepairResult:
        """Normalize stored flags and counters of every employee."""
        employee_ids = await self.repository.list_employee_ids()
        employees_updated = 0
        tasks_fixed = 0
        for employee_id in employee_ids:
            fixed = await self._run_atomic(partial(self._repair_employee, employee_id))
            if fixed:
                employees_updated += 1
                tasks_fixed += fixed
        return RepairResult(
            employees_processed=len(employee_ids),
            employees_updated=employees_updated,
            tasks_fixed=tasks_fixed,
        )

    # ------------------------------
    # Reads
    # ------------------------------

    def _record(self, task: Task, now: datetime) -> TaskRecord:
        record = TaskRecord.model_validate(task)
        record.status = derive_status(task.flags, record.verification_status, task.deadline, now)
        return record

    async def get_task(self, task_id: str) -> TaskRecord:
        task = await self.repository.load_task(task_id)
        return self._record(task, self.clock.now())

    async def get_employee_summary(self, employee_id: str) -> EmployeeSummary:
        employee = await self.repository.load_employee(employee_id)
        now = self.clock.now()
        counts = aggregate_task_counts(task.snapshot() for task in employee.tasks)
        return EmployeeSummary(
            employee_id=employee.employee_id,
            first_name=employee.first_name,
            last_name=employee.last_name,
            email=employee.email,
            version=employee.version,
            task_counts=TaskCountsResponse(
                **counts.as_dict(),
                total=counts.total,
                completion_rate=counts.completion_rate,
            ),
            tasks=[self._record(task, now) for task in employee.tasks],
        )

    async def list_pending_verification(self) -> List[PendingVerificationItem]:
        tasks = await self.repository.list_pending_verification()
        now = self.clock.now()
        return [
            PendingVerificationItem(
                task=self._record(task, now),
                employee_id=task.employee.employee_id,
                employee_name=" ".join(filter(None, [task.employee.first_name, task.employee.last_name])),
                employee_email=task.employee.email,
            )
            for task in tasks
        ]


def get_task_service(
    db: AsyncSession = Depends(aget_db),
    clock: Clock = Depends(get_clock),
) -> TaskLifecycleService:
    """FastAPI dependency building the lifecycle service for a request."""
    return TaskLifecycleService(db, clock=clock)

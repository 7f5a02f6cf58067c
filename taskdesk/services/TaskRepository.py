"""Persistence collaborator for the task lifecycle service."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from taskdesk.constants.constants import VerificationStatus
from taskdesk.core.exceptions import (
    ConcurrentModification,
    DuplicateEmployee,
    EmployeeNotFound,
    PersistenceFailure,
    TaskNotFound,
)
from taskdesk.models.document import SubmittedDocument
from taskdesk.models.employee import Employee
from taskdesk.models.task import Task
from taskdesk.utils.tasks.counter_aggregator import TaskCounts

logger = logging.getLogger(__name__)


class TaskRepository:
    """
    Reads and writes an employee's task collection through one ``AsyncSession``.

    The employee row is the unit of consistency: every write of a task goes
    together with the employee's recomputed counters and a version bump, and
    the version read at load time is checked by the UPDATE.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    def _employee_query(self):
        return select(Employee).options(
            selectinload(Employee.tasks).selectinload(Task.documents)
        )

    async def load_employee(self, employee_id: str) -> Employee:
        try:
            result = await self.db.execute(
                self._employee_query().where(Employee.employee_id == employee_id)
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Could not load employee: {e}") from e
        employee = result.scalar_one_or_none()
        if not employee:
            raise EmployeeNotFound(employee_id)
        return employee

    async def load_task(self, task_id: str) -> Task:
        try:
            result = await self.db.execute(
                select(Task)
                .options(selectinload(Task.documents))
                .where(Task.task_id == task_id)
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Could not load task: {e}") from e
        task = result.scalar_one_or_none()
        if not task:
            raise TaskNotFound(task_id)
        return task

    async def load_task_with_owner(self, task_id: str):
        """Load a task together with its owning employee's full collection."""
        task = await self.load_task(task_id)
        employee = await self.load_employee(task.employee_id)
        return employee, employee.find_task(task_id)

    async def add_employee(self, first_name: str, last_name: Optional[str], email: str) -> Employee:
        employee = Employee(
            first_name=first_name,
            last_name=last_name,
            email=email.lower(),
            version=1,
        )
        self.db.add(employee)
        try:
            await self.db.flush()
        except IntegrityError as e:
            raise DuplicateEmployee(email) from e
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Could not create employee: {e}") from e
        return employee

    async def list_employee_ids(self) -> List[str]:
        try:
            result = await self.db.execute(
                select(Employee.employee_id).order_by(Employee.employee_id)
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Could not list employees: {e}") from e
        return [row[0] for row in result.all()]

    async def list_employee_ids_with_overdue_tasks(self, now: datetime) -> List[str]:
        """Owners of non-terminal tasks past their deadline that are not under review."""
        try:
            result = await self.db.execute(
                select(Task.employee_id)
                .where(
                    and_(
                        Task.is_completed == False,
                        Task.is_failed == False,
                        Task.verification_status != VerificationStatus.pending,
                        Task.deadline < now,
                    )
                )
                .distinct()
                .order_by(Task.employee_id)
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Could not scan overdue tasks: {e}") from e
        return [row[0] for row in result.all()]

    async def list_pending_verification(self) -> List[Task]:
        try:
            result = await self.db.execute(
                select(Task)
                .options(selectinload(Task.documents), selectinload(Task.employee))
                .where(Task.verification_status == VerificationStatus.pending)
                .order_by(Task.submitted_at.asc())
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Could not list pending tasks: {e}") from e
        return list(result.scalars().unique().all())

    def add_document(self, task: Task, document: SubmittedDocument) -> None:
        document.position = len(task.documents)
        task.documents.append(document)

    async def save_task_and_counts(self, employee: Employee, counts: TaskCounts) -> None:
        """
        Flush the employee's task changes and counters under the version check.

        Raises:
            ConcurrentModification: another writer committed first.
            PersistenceFailure: the database rejected the write.
        """
        # A failed flush expires the instance, so read identity before flushing.
        employee_id = employee.employee_id
        expected_version = employee.version
        employee.apply_counts(counts)
        employee.version = expected_version + 1
        try:
            await self.db.flush()
        except StaleDataError as e:
            logger.warning(
                f"Version conflict on employee {employee_id} (expected {expected_version})"
            )
            raise ConcurrentModification(employee_id, expected_version) from e
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Could not save tasks: {e}") from e

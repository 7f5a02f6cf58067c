"""Employee model for the TaskDesk system."""

import uuid
from sqlalchemy import Column, String, Integer
from sqlalchemy.orm import relationship

from taskdesk.models.base import Base, TimestampMixin
from taskdesk.utils.tasks.counter_aggregator import TaskCounts


class Employee(Base, TimestampMixin):
    """Model representing an employee and the summary of their task mix."""

    __tablename__ = "employees"
    employee_id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=True)

    # Counters, recomputed from task flags on every task mutation
    new_task_count = Column(Integer, default=0, nullable=False)
    active_count = Column(Integer, default=0, nullable=False)
    completed_count = Column(Integer, default=0, nullable=False)
    failed_count = Column(Integer, default=0, nullable=False)
    pending_verification_count = Column(Integer, default=0, nullable=False)

    # Optimistic concurrency token for the employee's task collection
    version = Column(Integer, default=1, nullable=False)

    tasks = relationship(
        "Task",
        back_populates="employee",
        order_by="Task.assigned_at",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {
        "version_id_col": version,
        "version_id_generator": False,
    }

    @property
    def task_counts(self) -> TaskCounts:
        return TaskCounts(
            new_task=self.new_task_count or 0,
            active=self.active_count or 0,
            completed=self.completed_count or 0,
            failed=self.failed_count or 0,
            pending_verification=self.pending_verification_count or 0,
        )

    def apply_counts(self, counts: TaskCounts) -> None:
        self.new_task_count = counts.new_task
        self.active_count = counts.active
        self.completed_count = counts.completed
        self.failed_count = counts.failed
        self.pending_verification_count = counts.pending_verification

    def find_task(self, task_id: str):
        return next((task for task in self.tasks if task.task_id == task_id), None)

"""Task model for the Employees of the TaskDesk system."""

import uuid
from sqlalchemy import Column, Text, String, DateTime, Boolean, Enum as SQLEnum, ForeignKey
from sqlalchemy.orm import relationship

from taskdesk.constants.constants import TaskCategory, TaskStatus, VerificationStatus
from taskdesk.models.base import Base, TimestampMixin
from taskdesk.utils.tasks.state_engine import TaskFlags, TaskSnapshot, TaskState


class Task(Base, TimestampMixin):
    """Model representing a time-boxed task assigned to one employee."""

    __tablename__ = "tasks"
    task_id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    employee_id = Column(String, ForeignKey("employees.employee_id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(SQLEnum(TaskCategory), nullable=False)
    assigned_at = Column(DateTime, nullable=False)
    deadline = Column(DateTime, nullable=False, index=True)

    # Lifecycle flags, exactly one is true
    is_new = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=False, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    is_failed = Column(Boolean, default=False, nullable=False)

    verification_status = Column(SQLEnum(VerificationStatus), default=VerificationStatus.none, nullable=False)
    status = Column(SQLEnum(TaskStatus), default=TaskStatus.new, nullable=False, index=True)

    accepted_at = Column(DateTime, nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    verified_at = Column(DateTime, nullable=True)
    verified_by = Column(String, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    rejected_by = Column(String, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    verification_note = Column(Text, nullable=True)
    failed_at = Column(DateTime, nullable=True)

    employee = relationship("Employee", back_populates="tasks")
    documents = relationship(
        "SubmittedDocument",
        back_populates="task",
        order_by="SubmittedDocument.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def flags(self) -> TaskFlags:
        return TaskFlags(
            is_new=bool(self.is_new),
            is_active=bool(self.is_active),
            is_completed=bool(self.is_completed),
            is_failed=bool(self.is_failed),
        )

    def snapshot(self) -> TaskSnapshot:
        return TaskSnapshot(
            flags=self.flags,
            verification_status=VerificationStatus(self.verification_status or VerificationStatus.none),
            deadline=self.deadline,
            has_evidence=bool(self.documents),
        )

    def apply_state(self, state: TaskState) -> None:
        """Write a resolved state onto the row."""
        self.is_new = state.flags.is_new
        self.is_active = state.flags.is_active
        self.is_completed = state.flags.is_completed
        self.is_failed = state.flags.is_failed
        self.verification_status = state.verification_status
        self.status = state.status

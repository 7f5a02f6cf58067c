from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from taskdesk.constants.constants import (
    ALLOWED_DOCUMENT_MIME_TYPES,
    MAX_DOCUMENT_SIZE,
    ReviewDecision,
    TaskCategory,
    TaskStatus,
    VerificationStatus,
)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC, as stored in the database."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class SubmittedDocumentResponse(BaseModel):
    document_id: str
    file_name: str
    original_name: str
    file_path: str
    file_size: int
    mime_type: str
    uploaded_at: datetime
    uploaded_by: Optional[str] = None

    class Config:
        from_attributes = True


class TaskRecord(BaseModel):
    """Full view of a task returned by every lifecycle operation."""
    task_id: str
    employee_id: str
    title: str
    description: str
    category: TaskCategory
    assigned_at: datetime
    deadline: datetime
    is_new: bool
    is_active: bool
    is_completed: bool
    is_failed: bool
    verification_status: VerificationStatus
    status: TaskStatus
    documents: List[SubmittedDocumentResponse] = []
    accepted_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    verified_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    verification_note: Optional[str] = None
    failed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TaskCreateRequest(BaseModel):
    """Request schema for assigning a new task to an employee."""
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    category: TaskCategory
    deadline: datetime

    @field_validator('title', 'description')
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator('deadline')
    @classmethod
    def normalize_deadline(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class DocumentMetadata(BaseModel):
    """Metadata of a file already stored by the upload collaborator."""
    file_name: str = Field(..., min_length=1)
    original_name: Optional[str] = None
    file_path: str = Field(..., min_length=1)
    file_size: int = Field(..., ge=0, le=MAX_DOCUMENT_SIZE)
    mime_type: str
    uploaded_by: Optional[str] = None

    @field_validator('mime_type')
    @classmethod
    def check_mime_type(cls, v: str) -> str:
        if v not in ALLOWED_DOCUMENT_MIME_TYPES:
            raise ValueError(
                "Invalid file type. Only PDF, DOC, DOCX, TXT, JPG, PNG, GIF, XLS, XLSX files are allowed."
            )
        return v


class EvidenceSubmissionRequest(BaseModel):
    """Request schema for submitting evidence against a task."""
    documents: List[DocumentMetadata] = Field(default_factory=list)


class TaskReviewRequest(BaseModel):
    """Request schema for an admin review of submitted evidence."""
    decision: ReviewDecision
    note: Optional[str] = Field(None, max_length=1000)
    reviewer_id: Optional[str] = None


class TaskFailRequest(BaseModel):
    """Request schema for an admin marking a task failed."""
    note: Optional[str] = Field(None, max_length=1000)


class PendingVerificationItem(BaseModel):
    task: TaskRecord
    employee_id: str
    employee_name: str
    employee_email: str


class SweepResponse(BaseModel):
    updated_count: int
    message: str

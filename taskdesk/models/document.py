"""Evidence documents employees submit against a task."""

import uuid
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey
from sqlalchemy.orm import relationship

from taskdesk.models.base import Base


class SubmittedDocument(Base):
    """Metadata of an uploaded file; the bytes live in external storage."""

    __tablename__ = "submitted_documents"
    document_id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    task_id = Column(String, ForeignKey("tasks.task_id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    file_name = Column(String, nullable=False)
    original_name = Column(String, nullable=False)
    file_path = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String, nullable=False)
    uploaded_at = Column(DateTime, nullable=False)
    uploaded_by = Column(String, nullable=True)
    task = relationship("Task", back_populates="documents")

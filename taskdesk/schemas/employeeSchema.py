from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field

from taskdesk.schemas.taskSchema import TaskRecord


class EmployeeCreateRequest(BaseModel):
    """Request schema for registering an employee tasks can be assigned to."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: EmailStr


class TaskCountsResponse(BaseModel):
    new_task: int
    active: int
    completed: int
    failed: int
    pending_verification: int
    total: int
    completion_rate: float


class EmployeeResponse(BaseModel):
    employee_id: str
    first_name: str
    last_name: Optional[str] = None
    email: str
    version: int

    class Config:
        from_attributes = True


class EmployeeSummary(EmployeeResponse):
    """Employee with live counts and the ordered task list."""
    task_counts: TaskCountsResponse
    tasks: List[TaskRecord] = []

"""Employee router: registration, task assignment and task summaries."""

from fastapi import APIRouter, Depends, status

from taskdesk.schemas.employeeSchema import EmployeeCreateRequest, EmployeeResponse, EmployeeSummary
from taskdesk.schemas.taskSchema import TaskCreateRequest, TaskRecord
from taskdesk.services.TaskLifecycleService import TaskLifecycleService, get_task_service

router = APIRouter(
    prefix="/employees",
    tags=["employees"]
)


@router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_data: EmployeeCreateRequest,
    service: TaskLifecycleService = Depends(get_task_service),
):
    """
    Register an employee that tasks can be assigned to.
    """
    return await service.create_employee(
        employee_data.first_name,
        employee_data.last_name,
        employee_data.email,
    )


@router.get("/{employee_id}", response_model=EmployeeSummary)
async def get_employee(
    employee_id: str,
    service: TaskLifecycleService = Depends(get_task_service),
):
    """
    Get an employee with their tasks and task counts.
    Counts are recomputed from the task flags on every read.
    """
    return await service.get_employee_summary(employee_id)


@router.post("/{employee_id}/tasks", response_model=TaskRecord, status_code=status.HTTP_201_CREATED)
async def assign_task(
    employee_id: str,
    task_data: TaskCreateRequest,
    service: TaskLifecycleService = Depends(get_task_service),
):
    """
    Create a new task for an employee.
    The deadline must be at least the grace window after now.
    """
    return await service.assign_task(employee_id, task_data)

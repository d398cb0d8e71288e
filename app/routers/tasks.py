# =============================================================================
# app/routers/tasks.py - Task Endpoints
# =============================================================================
# Task CRUD, state listings and completion. Every task in a response
# carries `is_overdue` and `state`, derived at response time.
#
# Endpoints:
#   GET    /api/tasks                  - List (culture_id, completed, state filters)
#   POST   /api/tasks                  - Create (culture must exist)
#   GET    /api/tasks/today/list       - Tasks scheduled today (server TIMEZONE)
#   GET    /api/tasks/overdue/list     - Incomplete tasks past their time
#   GET    /api/tasks/{id}             - Get one task
#   PUT    /api/tasks/{id}             - Update (re-arms notifications)
#   DELETE /api/tasks/{id}             - Delete (cancels notifications)
#   POST   /api/tasks/{id}/complete    - Complete; passaging tasks passage the culture
# =============================================================================

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status

from app.auth import AuthUser, get_current_user
from app.config import settings
from app.dependencies import ClockDep, TaskServiceDep
from app.responses import envelope
from core.models.task import TaskCreate, TaskFilter, TaskUpdate
from core.task_state import to_response

logger = logging.getLogger(__name__)

router = APIRouter()

TaskIdPath = Annotated[UUID, Path(description="Task UUID")]


@router.get("")
async def list_tasks(
    service: TaskServiceDep,
    clock: ClockDep,
    culture_id: Annotated[UUID | None, Query(description="Only tasks for this culture")] = None,
    completed: Annotated[bool | None, Query(description="Filter on the completion flag")] = None,
    state: Annotated[TaskFilter, Query(description="all, pending, overdue or completed")] = TaskFilter.ALL,
    user: AuthUser = Depends(get_current_user),
):
    """List the caller's tasks ordered by scheduled time."""
    tasks = service.list_tasks(
        user.user_id,
        culture_id=str(culture_id) if culture_id else None,
        completed=completed,
        state=state,
    )
    now = clock()
    return envelope([to_response(task, now) for task in tasks])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    body: TaskCreate,
    service: TaskServiceDep,
    clock: ClockDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Create a task and schedule its reminder and overdue alert.

    Raises:
        400: Invalid body (bad type, reminder_hours outside 0-168, ...)
        404: Culture doesn't exist
    """
    task = service.create_task(user.user_id, body)
    return envelope(
        to_response(task, clock()),
        message="Task created successfully",
        warnings=service.warnings,
    )


@router.get("/today/list")
async def list_today(
    service: TaskServiceDep,
    clock: ClockDep,
    user: AuthUser = Depends(get_current_user),
):
    """Tasks scheduled during the current day."""
    tasks = service.list_today(user.user_id, zone=settings.TIMEZONE)
    now = clock()
    return envelope([to_response(task, now) for task in tasks])


@router.get("/overdue/list")
async def list_overdue(
    service: TaskServiceDep,
    clock: ClockDep,
    user: AuthUser = Depends(get_current_user),
):
    """Incomplete tasks whose scheduled time has passed."""
    tasks = service.list_overdue(user.user_id)
    now = clock()
    return envelope([to_response(task, now) for task in tasks])


@router.get("/{task_id}")
async def get_task(
    task_id: TaskIdPath,
    service: TaskServiceDep,
    clock: ClockDep,
    user: AuthUser = Depends(get_current_user),
):
    """Get one task."""
    task = service.get_task(str(task_id), user.user_id)
    return envelope(to_response(task, clock()))


@router.put("/{task_id}")
async def update_task(
    task_id: TaskIdPath,
    body: TaskUpdate,
    service: TaskServiceDep,
    clock: ClockDep,
    user: AuthUser = Depends(get_current_user),
):
    """Update a task; its notifications are cancelled and re-registered."""
    task = service.update_task(str(task_id), user.user_id, body)
    return envelope(
        to_response(task, clock()),
        message="Task updated successfully",
        warnings=service.warnings,
    )


@router.delete("/{task_id}")
async def delete_task(
    task_id: TaskIdPath,
    service: TaskServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Delete a task and cancel its notifications."""
    service.delete_task(str(task_id), user.user_id)
    return envelope(
        {"id": str(task_id)},
        message="Task deleted successfully",
        warnings=service.warnings,
    )


@router.post("/{task_id}/complete")
async def complete_task(
    task_id: TaskIdPath,
    service: TaskServiceDep,
    clock: ClockDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Mark a task as completed.

    Passaging tasks add one to the culture's passage number. Completing an
    already completed task changes nothing.

    Raises:
        404: Task (or its culture) doesn't exist
        500: Completion not written, or (two-step fallback only) task
             completed but the passage increment failed; both retryable
    """
    result = service.complete_task(str(task_id), user.user_id)
    message = "Task was already completed" if result.already_completed else "Task completed successfully"
    return envelope(
        {
            "task": to_response(result.task, clock()),
            "culture": result.culture,
            "already_completed": result.already_completed,
        },
        message=message,
        warnings=result.warnings,
    )

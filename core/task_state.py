# =============================================================================
# core/task_state.py - Task State Evaluator
# =============================================================================
# The single place that decides whether a task is pending, overdue or
# completed. Listings, the overdue endpoint and task responses all call
# into here so the rule cannot drift between call sites.
#
# Rule:
#   completed  if is_completed
#   overdue    if not completed and scheduled_date < now
#   pending    otherwise
#
# Pure functions only. A task's state changes as the clock moves without
# any write, so results must never be stored.
# =============================================================================

from datetime import datetime
from typing import Iterable

from core.models.task import Task, TaskFilter, TaskResponse, TaskState
from lib.utils import ensure_aware


def classify(task: Task, now: datetime) -> TaskState:
    """
    Classify a task at instant `now`.

    A task scheduled exactly at `now` is still pending; it becomes
    overdue the moment the clock passes its scheduled time.
    """
    if task.is_completed:
        return TaskState.COMPLETED
    if ensure_aware(task.scheduled_date) < ensure_aware(now):
        return TaskState.OVERDUE
    return TaskState.PENDING


def is_overdue(task: Task, now: datetime) -> bool:
    """True iff the task is incomplete and its scheduled time has passed."""
    return classify(task, now) is TaskState.OVERDUE


def filter_tasks(
    tasks: Iterable[Task],
    criterion: TaskFilter | str,
    now: datetime,
) -> list[Task]:
    """
    Return the tasks matching `criterion`, preserving input order.

    Callers sort by scheduled_date themselves where needed. An empty input
    yields an empty list.
    """
    criterion = TaskFilter(criterion)
    if criterion is TaskFilter.ALL:
        return list(tasks)
    wanted = TaskState(criterion.value)
    return [task for task in tasks if classify(task, now) is wanted]


def to_response(task: Task, now: datetime) -> TaskResponse:
    """Build the client-facing view of a task with its state derived at `now`."""
    state = classify(task, now)
    return TaskResponse(
        id=task.id,
        culture_id=task.culture_id,
        type=task.type,
        title=task.title,
        description=task.description,
        scheduled_date=task.scheduled_date,
        completed_date=task.completed_date,
        is_completed=task.is_completed,
        reminder_hours=task.reminder_hours,
        is_overdue=state is TaskState.OVERDUE,
        state=state,
        culture=task.culture,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )

# =============================================================================
# core/services/task_service.py - Task Business Logic and Passage Counter
# =============================================================================
# Task CRUD, the state-based listings, and task completion.
#
# Completing a task is one store call (the complete_task Postgres function):
#   1. Conditionally flip is_completed false -> true (sets completed_date).
#      If the task was already completed nothing else happens, so a double
#      submit never increments twice.
#   2. For passaging tasks, add one to the culture's passage_number and
#      stamp last_action_date, in the same transaction as step 1.
# Afterwards the task's pending alerts are cancelled.
#
# Only the two-step fallback (function not deployed) can leave a completed
# task without its passage; that raises PartialCompletionError so the
# caller knows the passage still needs recording.
# =============================================================================

import logging
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Any, Callable
from uuid import uuid4
from zoneinfo import ZoneInfo

from app.exceptions import (
    CultureNotFoundError,
    PartialCompletionError,
    TaskNotFoundError,
)
from core.models.culture import Culture, CultureSummary
from core.models.notification import NotificationSettings
from core.models.task import Task, TaskCreate, TaskFilter, TaskType, TaskUpdate
from core.services.reminder_service import ReminderService
from core.services.settings_service import SettingsService
from core.task_state import filter_tasks
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import ensure_aware, normalize_uuid, to_iso, utc_now

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    """Outcome of complete_task."""

    task: Task
    culture: CultureSummary | None = None
    already_completed: bool = False
    warnings: list[str] = field(default_factory=list)


class TaskService:
    """
    Service for task operations.

    Example:
        service = TaskService(SupabaseClient, reminders, settings_service)
        result = service.complete_task(task_id, user_id)
        print(result.culture.passage_number)
    """

    def __init__(
        self,
        store: Any = SupabaseClient,
        reminders: ReminderService | None = None,
        settings_service: SettingsService | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.reminders = reminders
        self.settings_service = settings_service or SettingsService(store, reminders)
        self.clock = clock

    @property
    def warnings(self) -> list[str]:
        """Non-fatal notification problems raised during this service's calls."""
        return self.reminders.warnings if self.reminders is not None else []

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_task(self, task_id: str, user_id: str) -> Task:
        """
        Get a task by ID.

        Raises:
            TaskNotFoundError: If it doesn't exist or belongs to someone else
        """
        row = self.store.fetch_task(task_id, user_id)
        if row is None:
            raise TaskNotFoundError(str(task_id))
        return Task.model_validate(row)

    def list_tasks(
        self,
        user_id: str,
        culture_id: str | None = None,
        completed: bool | None = None,
        state: TaskFilter = TaskFilter.ALL,
    ) -> list[Task]:
        """List tasks ordered by scheduled_date, then narrowed to `state` at the current time."""
        rows = self.store.list_tasks(
            user_id,
            culture_id=normalize_uuid(culture_id) if culture_id else None,
            completed=completed,
        )
        tasks = [Task.model_validate(row) for row in rows]
        return filter_tasks(tasks, state, self.clock())

    def list_today(self, user_id: str, zone: str = "UTC") -> list[Task]:
        """Tasks whose scheduled time falls on the current calendar day in `zone`."""
        tz = ZoneInfo(zone)
        local_now = ensure_aware(self.clock()).astimezone(tz)
        start = datetime.combine(local_now.date(), time.min, tzinfo=tz)
        end = start + timedelta(days=1) - timedelta(microseconds=1)

        rows = self.store.list_tasks(user_id, scheduled_from=start, scheduled_to=end)
        return [Task.model_validate(row) for row in rows]

    def list_overdue(self, user_id: str) -> list[Task]:
        """Incomplete tasks whose scheduled time has passed, oldest first."""
        now = self.clock()
        rows = self.store.list_tasks(user_id, completed=False, scheduled_before=now)
        tasks = [Task.model_validate(row) for row in rows]
        return filter_tasks(tasks, TaskFilter.OVERDUE, now)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _load_settings(self, user_id: str) -> NotificationSettings:
        return self.settings_service.get_settings(user_id)

    def _arm(self, task: Task, user_id: str, notification_settings: NotificationSettings | None = None) -> None:
        if self.reminders is None or task.is_completed:
            return
        try:
            notification_settings = notification_settings or self._load_settings(user_id)
        except SupabaseClientError as e:
            self.reminders.warnings.append(f"Notifications not scheduled for task {task.id}: {e.message}")
            logger.warning(f"Could not load notification settings for user {user_id}: {e}")
            return
        self.reminders.schedule_for_task(task, notification_settings)

    def _disarm(self, task_id: str, user_id: str) -> None:
        if self.reminders is not None:
            self.reminders.cancel_for_task(task_id, owner=user_id)

    def create_task(self, user_id: str, data: TaskCreate) -> Task:
        """
        Create a task against an existing culture and schedule its alerts.

        reminder_hours falls back to the user's default_reminder_hours.

        Raises:
            CultureNotFoundError: If the culture doesn't exist (no task is created)
        """
        culture_id = normalize_uuid(data.culture_id)
        if self.store.fetch_culture(culture_id, user_id) is None:
            raise CultureNotFoundError(culture_id)

        notification_settings = self._load_settings(user_id)
        reminder_hours = data.reminder_hours
        if reminder_hours is None:
            reminder_hours = notification_settings.default_reminder_hours

        row = self.store.insert_task({
            "id": str(uuid4()),
            "user_id": user_id,
            "culture_id": culture_id,
            "type": data.type.value,
            "title": data.title,
            "description": data.description,
            "scheduled_date": to_iso(data.scheduled_date),
            "reminder_hours": reminder_hours,
            "is_completed": False,
            "completed_date": None,
        })
        task = Task.model_validate(row)
        logger.info(f"Created {task.type.value} task {task.id} on culture {culture_id}")

        self._arm(task, user_id, notification_settings)
        return task

    def update_task(self, task_id: str, user_id: str, data: TaskUpdate) -> Task:
        """
        Apply a partial update and bring the task's alerts in line with it.

        is_completed=true goes through complete_task; is_completed=false
        reopens the task and clears completed_date.
        """
        current = self.get_task(task_id, user_id)
        changes = data.model_dump(exclude_none=True, exclude={"is_completed"}, mode="json")

        # Nothing is written when the completion would fail
        completing = data.is_completed is True and not current.is_completed
        if (
            completing
            and (data.type or current.type) is TaskType.PASSAGING
            and self.store.fetch_culture(current.culture_id, user_id) is None
        ):
            raise CultureNotFoundError(current.culture_id)

        task = current
        if changes:
            row = self.store.update_task(task_id, user_id, changes)
            if row is None:
                raise TaskNotFoundError(str(task_id))
            task = Task.model_validate(row)

        if data.is_completed is True and not task.is_completed:
            return self.complete_task(task_id, user_id).task

        if data.is_completed is False and task.is_completed:
            row = self.store.update_task(task_id, user_id, {"is_completed": False, "completed_date": None})
            if row is None:
                raise TaskNotFoundError(str(task_id))
            task = Task.model_validate(row)
            logger.info(f"Reopened task {task_id}")

        self._disarm(task.id, user_id)
        self._arm(task, user_id)
        return task

    def delete_task(self, task_id: str, user_id: str) -> None:
        """Delete a task and cancel its alerts."""
        self.get_task(task_id, user_id)
        self._disarm(str(task_id), user_id)
        if not self.store.delete_task(task_id, user_id):
            raise TaskNotFoundError(str(task_id))
        logger.info(f"Deleted task {task_id}")

    # -------------------------------------------------------------------------
    # Passage Counter
    # -------------------------------------------------------------------------

    def complete_task(self, task_id: str, user_id: str) -> CompletionResult:
        """
        Mark a task completed; passaging tasks also passage their culture.

        Idempotent per task: completing an already completed task returns
        it unchanged with already_completed=True.

        Raises:
            TaskNotFoundError: If the task doesn't exist
            CultureNotFoundError: If a passaging task's culture is gone
                (checked before anything is written)
            PartialCompletionError: If the two-step fallback completed the
                task but the passage increment failed
            SupabaseClientError: If the completion was not written
        """
        task = self.get_task(task_id, user_id)
        if task.is_completed:
            logger.debug(f"Task {task_id} already completed, nothing to do")
            return CompletionResult(task=task, already_completed=True)

        if task.type is TaskType.PASSAGING and self.store.fetch_culture(task.culture_id, user_id) is None:
            raise CultureNotFoundError(task.culture_id)

        now = self.clock()
        try:
            outcome = self.store.complete_task(task_id, user_id, now)
        except PartialCompletionError as e:
            logger.error(f"Task {task_id} completed without its passage: {e.message}")
            self._disarm(str(task_id), user_id)
            raise
        if outcome is None:
            # Another request completed it between our read and our write
            task = self.get_task(task_id, user_id)
            return CompletionResult(task=task, already_completed=True)
        task = Task.model_validate(outcome["task"])

        summary = None
        if outcome.get("culture") is not None:
            culture = Culture.model_validate(outcome["culture"])
            summary = CultureSummary.from_culture(culture)
            if task.type is TaskType.PASSAGING:
                logger.info(f"Culture {culture.id} passaged to P{culture.passage_number} by task {task.id}")

        self._disarm(task.id, user_id)
        return CompletionResult(task=task, culture=summary, warnings=list(self.warnings))

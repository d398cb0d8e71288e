# =============================================================================
# core/services/data_service.py - Export / Import / Clear
# =============================================================================
# Moves a user's whole dataset in and out as a DataBundle.
#
# Import keeps the ids of rows the caller already owns (so re-importing an
# export updates in place) and assigns fresh ids to everything else, then
# rebuilds every alert with reschedule_all. An owned culture keeps its stored
# passage_number when the imported one is lower, and an owned task that is
# already completed stays completed.
# =============================================================================

import logging
from datetime import datetime
from typing import Any, Callable
from uuid import uuid4

from app.exceptions import ValidationError
from core.models.culture import Culture
from core.models.data import DataBundle, ImportSummary
from core.models.task import Task
from core.services.reminder_service import ReminderService
from core.services.settings_service import SettingsService
from lib.supabase_client import SupabaseClient
from lib.utils import to_iso, utc_now

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = {"enabled", "default_reminder_hours", "overdue_alerts"}
TIMESTAMP_FIELDS = {"created_at", "updated_at"}


class DataService:
    """Bulk operations over one user's cultures, tasks and settings."""

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

    def export_data(self, user_id: str) -> DataBundle:
        """Snapshot everything the user owns."""
        cultures = [Culture.model_validate(row) for row in self.store.list_cultures(user_id)]
        tasks = [Task.model_validate(row) for row in self.store.list_tasks(user_id)]
        bundle = DataBundle(
            cultures=cultures,
            tasks=tasks,
            notification_settings=self.settings_service.get_settings(user_id),
            exported_at=self.clock(),
        )
        logger.info(f"Exported {len(cultures)} cultures and {len(tasks)} tasks for user {user_id}")
        return bundle

    def import_data(self, user_id: str, bundle: DataBundle) -> ImportSummary:
        """
        Load a bundle into the user's account.

        Every task must reference a culture in the bundle or one the user
        already has; otherwise nothing is written.

        Raises:
            ValidationError: If a task references an unknown culture
        """
        culture_ids: dict[str, str] = {}
        stored_cultures: dict[str, dict[str, Any]] = {}
        for culture in bundle.cultures:
            stored = self.store.fetch_culture(culture.id, user_id)
            if stored is not None:
                stored_cultures[culture.id] = stored
            culture_ids[culture.id] = culture.id if stored is not None else str(uuid4())

        missing = sorted({
            task.culture_id for task in bundle.tasks
            if task.culture_id not in culture_ids
            and self.store.fetch_culture(task.culture_id, user_id) is None
        })
        if missing:
            raise ValidationError(
                message=f"{len(missing)} culture(s) referenced by tasks are not in the import or your account",
                suggestion="Include every referenced culture in the import file",
                details={"culture_ids": missing},
            )

        now = self.clock()
        culture_rows = [
            self._culture_row(culture, user_id, culture_ids, stored_cultures.get(culture.id))
            for culture in bundle.cultures
        ]
        task_rows = [
            self._task_row(task, user_id, culture_ids, now, self.store.fetch_task(task.id, user_id))
            for task in bundle.tasks
        ]

        self.store.upsert_cultures(culture_rows)
        self.store.upsert_tasks(task_rows)

        if bundle.notification_settings is not None:
            self.store.upsert_notification_settings(
                user_id,
                bundle.notification_settings.model_dump(include=SETTINGS_FIELDS),
            )

        scheduled = self.settings_service.reschedule(user_id)
        summary = ImportSummary(
            cultures=len(culture_rows),
            tasks=len(task_rows),
            notifications_scheduled=scheduled,
            warnings=list(self.reminders.warnings) if self.reminders is not None else [],
        )
        logger.info(f"Imported {summary.cultures} cultures and {summary.tasks} tasks for user {user_id}")
        return summary

    def clear_data(self, user_id: str) -> int:
        """Delete all of the user's cultures and tasks and cancel their alerts."""
        if self.reminders is not None:
            self.reminders.clear(owner=user_id)
        removed = self.store.delete_all_cultures(user_id)
        logger.info(f"Cleared {removed} cultures for user {user_id}")
        return removed

    # -------------------------------------------------------------------------
    # Row builders
    # -------------------------------------------------------------------------

    @staticmethod
    def _culture_row(
        culture: Culture,
        user_id: str,
        culture_ids: dict[str, str],
        stored: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        row = culture.model_dump(mode="json", exclude=TIMESTAMP_FIELDS)
        row["id"] = culture_ids[culture.id]
        row["user_id"] = user_id
        # passage_number never goes down, even when an older export is loaded
        if stored is not None and (stored.get("passage_number") or 0) > culture.passage_number:
            row["passage_number"] = stored["passage_number"]
            row["last_action_date"] = stored.get("last_action_date")
        return row

    @staticmethod
    def _task_row(
        task: Task,
        user_id: str,
        culture_ids: dict[str, str],
        now: datetime,
        stored: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        row = task.model_dump(mode="json", exclude={"culture"} | TIMESTAMP_FIELDS)
        row["id"] = task.id if stored is not None else str(uuid4())
        row["user_id"] = user_id
        row["culture_id"] = culture_ids.get(task.culture_id, task.culture_id)
        # A stored completion is never undone
        if stored is not None and stored.get("is_completed") and not task.is_completed:
            row["is_completed"] = True
            row["completed_date"] = stored.get("completed_date")
        # completed_date is present exactly when the task is completed
        elif task.is_completed:
            row["completed_date"] = row.get("completed_date") or to_iso(now)
        else:
            row["completed_date"] = None
        return row

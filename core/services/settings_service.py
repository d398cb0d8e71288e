# =============================================================================
# core/services/settings_service.py - Notification Settings
# =============================================================================
# One settings record per user, created with defaults the first time it is
# read. Every change re-arms the user's alerts so they reflect the new
# settings.
# =============================================================================

import logging
from typing import Any

from app.config import settings as app_settings
from core.models.notification import NotificationSettings, NotificationSettingsUpdate
from core.models.task import Task
from core.services.reminder_service import ReminderService
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class SettingsService:
    """Read and update a user's NotificationSettings."""

    def __init__(self, store: Any = SupabaseClient, reminders: ReminderService | None = None):
        self.store = store
        self.reminders = reminders

    def get_settings(self, user_id: str) -> NotificationSettings:
        """
        Return the user's settings, creating the default record if absent.

        Defaults: enabled, DEFAULT_REMINDER_HOURS (2 unless configured),
        overdue alerts on.
        """
        row = self.store.fetch_notification_settings(user_id)
        if row is None:
            defaults = NotificationSettings(default_reminder_hours=app_settings.DEFAULT_REMINDER_HOURS)
            row = self.store.upsert_notification_settings(
                user_id,
                defaults.model_dump(include={"enabled", "default_reminder_hours", "overdue_alerts"}),
            )
            logger.info(f"Created default notification settings for user {user_id}")
        return NotificationSettings.model_validate(row)

    def update_settings(self, user_id: str, update: NotificationSettingsUpdate) -> NotificationSettings:
        """
        Apply a partial update, then reschedule every incomplete task's
        alerts under the new settings.
        """
        current = self.get_settings(user_id)
        changes = update.model_dump(exclude_none=True)
        merged = current.model_copy(update=changes)

        row = self.store.upsert_notification_settings(
            user_id,
            merged.model_dump(include={"enabled", "default_reminder_hours", "overdue_alerts"}),
        )
        saved = NotificationSettings.model_validate(row)
        logger.info(f"Updated notification settings for user {user_id}: {changes}")

        self.reschedule(user_id, saved)
        return saved

    def reschedule(self, user_id: str, current: NotificationSettings | None = None) -> int:
        """Rebuild every alert for the user's incomplete tasks. Returns alerts scheduled."""
        if self.reminders is None:
            return 0
        current = current or self.get_settings(user_id)
        rows = self.store.list_tasks(user_id, completed=False)
        tasks = [Task.model_validate(row) for row in rows]
        return self.reminders.reschedule_all(tasks, current, owner=user_id)

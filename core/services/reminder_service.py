# =============================================================================
# core/services/reminder_service.py - Reminder Scheduler
# =============================================================================
# Computes and manages the two alerts each task gets:
#
#   reminder       scheduled_date - reminder_hours   (skipped if already past)
#   overdue alert  scheduled_date + 1 hour           (registered even if past)
#
# The asymmetry is intentional: reminders are never fired retroactively,
# overdue alerts are. Both are gated by the user's `enabled` flag; the
# overdue alert is also gated by `overdue_alerts`.
#
# Scheduling problems never fail the caller. They are logged and collected
# in `warnings` so routes can report them alongside a successful response.
# =============================================================================

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable

from core.models.notification import (
    NotificationKind,
    NotificationPayload,
    NotificationSettings,
)
from core.models.task import Task
from core.scheduling import NotificationScheduler
from lib.utils import ensure_aware, utc_now

logger = logging.getLogger(__name__)

# Fixed grace period before an incomplete task triggers its overdue alert
OVERDUE_GRACE = timedelta(hours=1)


def reminder_time(task: Task) -> datetime:
    """When the pre-due reminder for `task` fires."""
    return ensure_aware(task.scheduled_date) - timedelta(hours=task.reminder_hours)


def overdue_alert_time(task: Task) -> datetime:
    """When the overdue alert for `task` fires."""
    return ensure_aware(task.scheduled_date) + OVERDUE_GRACE


def _reminder_payload(task: Task) -> NotificationPayload:
    return NotificationPayload(
        task_id=task.id,
        kind=NotificationKind.REMINDER,
        user_id=task.user_id,
        title="Cell Culture Task Reminder",
        body=f"{task.title} is due in {task.reminder_hours} hours",
    )


def _overdue_payload(task: Task) -> NotificationPayload:
    return NotificationPayload(
        task_id=task.id,
        kind=NotificationKind.OVERDUE,
        user_id=task.user_id,
        title="Overdue Task Alert",
        body=f"{task.title} is overdue!",
    )


class ReminderService:
    """
    Keeps a task's scheduled alerts consistent with the task.

    Settings are passed into every scheduling call rather than read from
    shared state, so callers load them once per operation.

    Example:
        reminders = ReminderService(scheduler)
        reminders.cancel_for_task(task.id, owner=user_id)
        reminders.schedule_for_task(task, settings)
    """

    def __init__(
        self,
        scheduler: NotificationScheduler,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.scheduler = scheduler
        self.clock = clock
        self.warnings: list[str] = []

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    def schedule_reminder(
        self,
        task: Task,
        settings: NotificationSettings,
        now: datetime | None = None,
    ) -> str | None:
        """
        Register the pre-due reminder for a task.

        Returns:
            Scheduler handle, or None when notifications are disabled, the
            reminder time is not in the future, or scheduling failed
        """
        if not settings.enabled:
            return None

        now = ensure_aware(now or self.clock())
        fire_at = reminder_time(task)
        if fire_at <= now:
            logger.debug(f"Reminder for task {task.id} already past ({fire_at.isoformat()}), not scheduling")
            return None

        try:
            return self.scheduler.schedule_once(fire_at, _reminder_payload(task))
        except Exception as e:
            self._warn(f"Could not schedule reminder for task {task.id}: {e}")
            return None

    def schedule_overdue_alert(
        self,
        task: Task,
        settings: NotificationSettings,
    ) -> str | None:
        """
        Register the overdue alert for a task, even if its time has passed.

        Returns:
            Scheduler handle, or None when notifications or overdue alerts
            are disabled, or scheduling failed
        """
        if not settings.enabled or not settings.overdue_alerts:
            return None

        try:
            return self.scheduler.schedule_once(overdue_alert_time(task), _overdue_payload(task))
        except Exception as e:
            self._warn(f"Could not schedule overdue alert for task {task.id}: {e}")
            return None

    def schedule_for_task(
        self,
        task: Task,
        settings: NotificationSettings,
        now: datetime | None = None,
    ) -> list[str]:
        """Register both alerts for an incomplete task. Completed tasks get none."""
        if task.is_completed:
            return []
        handles = [
            self.schedule_reminder(task, settings, now=now),
            self.schedule_overdue_alert(task, settings),
        ]
        return [handle for handle in handles if handle]

    # -------------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------------

    def cancel_for_task(self, task_id: str, owner: str | None = None) -> int:
        """
        Cancel every pending alert (both kinds) whose payload names task_id.

        Cancelling a task with nothing scheduled is a no-op.

        Returns:
            Number of alerts cancelled
        """
        try:
            scheduled = self.scheduler.list_scheduled(owner)
        except Exception as e:
            self._warn(f"Could not list scheduled notifications for task {task_id}: {e}")
            return 0

        cancelled = 0
        for entry in scheduled:
            if entry.payload.task_id != task_id:
                continue
            try:
                self.scheduler.cancel(entry.handle)
                cancelled += 1
            except Exception as e:
                self._warn(f"Could not cancel notification {entry.handle} for task {task_id}: {e}")

        if cancelled:
            logger.debug(f"Cancelled {cancelled} notifications for task {task_id}")
        return cancelled

    def clear(self, owner: str | None = None) -> int:
        """Cancel every scheduled alert for `owner` (everyone if None)."""
        try:
            return self.scheduler.cancel_all(owner)
        except Exception as e:
            self._warn(f"Could not clear scheduled notifications: {e}")
            return 0

    def reschedule_all(
        self,
        tasks: Iterable[Task],
        settings: NotificationSettings,
        owner: str | None = None,
    ) -> int:
        """
        Drop every scheduled alert, then schedule both alerts for each
        incomplete task.

        Used after a bulk import and after settings change. If the existing
        alerts cannot be cleared nothing new is scheduled, to avoid leaving
        duplicates behind.

        Returns:
            Number of alerts now scheduled
        """
        try:
            cleared = self.scheduler.cancel_all(owner)
        except Exception as e:
            self._warn(f"Could not clear scheduled notifications: {e}")
            return 0

        now = ensure_aware(self.clock())
        scheduled = 0
        for task in tasks:
            scheduled += len(self.schedule_for_task(task, settings, now=now))

        logger.info(f"Rescheduled notifications for {owner or 'all users'}: cleared {cleared}, scheduled {scheduled}")
        return scheduled

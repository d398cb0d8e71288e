# =============================================================================
# workers/scheduler.py - Celery-backed Notification Scheduler
# =============================================================================
# Durable implementation of core.scheduling.NotificationScheduler.
#
# Each alert is:
# 1. Recorded in the scheduled_notifications table (so it can be listed and
#    cancelled by task)
# 2. Enqueued as workers.tasks.deliver_notification with eta=fire_at and the
#    handle as its Celery task id
#
# Cancelling deletes the row (which alone guarantees the alert won't be
# delivered) and revokes the Celery message.
# =============================================================================

import logging
from datetime import datetime
from typing import Any
from uuid import uuid4

from core.models.notification import NotificationPayload, ScheduledNotification
from core.scheduling import SchedulerUnavailableError
from lib.supabase_client import SupabaseClient
from lib.utils import ensure_aware, to_iso
from workers.celery_app import celery_app
from workers.tasks import deliver_notification, payload_from_row

logger = logging.getLogger(__name__)


class CeleryNotificationScheduler:
    """
    Schedules alerts as delayed Celery tasks.

    Example:
        scheduler = CeleryNotificationScheduler()
        handle = scheduler.schedule_once(fire_at, payload)
        scheduler.cancel(handle)
    """

    def __init__(self, store: Any = SupabaseClient, app=celery_app):
        self.store = store
        self.app = app

    def schedule_once(self, fire_at: datetime, payload: NotificationPayload) -> str:
        handle = str(uuid4())
        fire_at = ensure_aware(fire_at)

        self.store.insert_scheduled_notification({
            "id": handle,
            "user_id": payload.user_id,
            "task_id": payload.task_id,
            "kind": payload.kind.value,
            "title": payload.title,
            "body": payload.body,
            "fire_at": to_iso(fire_at),
        })

        try:
            deliver_notification.apply_async(args=[handle], eta=fire_at, task_id=handle)
        except Exception as e:
            # Without a queued message the row would never fire; drop it
            self.store.delete_scheduled_notification(handle)
            raise SchedulerUnavailableError(f"Could not enqueue notification: {e}") from e

        logger.debug(f"Enqueued {payload.kind.value} for task {payload.task_id} at {fire_at.isoformat()}")
        return handle

    def cancel(self, handle: str) -> None:
        self.store.delete_scheduled_notification(handle)
        try:
            self.app.control.revoke(handle)
        except Exception as e:
            # The row is gone, so the worker will skip it anyway
            logger.warning(f"Could not revoke Celery task {handle}: {e}")

    def list_scheduled(self, owner: str | None = None) -> list[ScheduledNotification]:
        rows = self.store.list_scheduled_notifications(owner)
        return [
            ScheduledNotification(
                handle=row["id"],
                payload=payload_from_row(row),
                fire_at=row["fire_at"],
            )
            for row in rows
        ]

    def cancel_all(self, owner: str | None = None) -> int:
        entries = self.list_scheduled(owner)
        for entry in entries:
            self.cancel(entry.handle)
        return len(entries)

# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Tasks:
# - deliver_notification: Fire one scheduled reminder / overdue alert
#
# An alert is delivered only if its row in scheduled_notifications still
# exists; cancelling deletes the row, so a revoked message that reaches a
# worker anyway is dropped.
# =============================================================================

import logging
from typing import Any

from celery import shared_task

from app.websocket.broadcast import publish_notification
from core.models.notification import NotificationKind, NotificationPayload
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)


def payload_from_row(row: dict[str, Any]) -> NotificationPayload:
    """Rebuild the payload stored alongside a scheduled alert."""
    return NotificationPayload(
        task_id=row["task_id"],
        kind=NotificationKind(row["kind"]),
        user_id=row.get("user_id"),
        title=row.get("title") or "",
        body=row.get("body") or "",
    )


@shared_task(bind=True, name="workers.tasks.deliver_notification")
def deliver_notification(self, handle: str) -> dict[str, Any]:
    """
    Deliver a scheduled alert to its owner's connected clients.

    Args:
        handle: The alert's handle (also its Celery task id)

    Returns:
        Dict with:
        - delivered: bool
        - reason: Why it was skipped (if it was)
    """
    try:
        row = SupabaseClient.fetch_scheduled_notification(handle)
        if row is None:
            logger.info(f"Notification {handle} was cancelled, skipping")
            return {"delivered": False, "reason": "cancelled"}

        # Claim it; a second delivery of the same message finds nothing
        if not SupabaseClient.delete_scheduled_notification(handle):
            logger.info(f"Notification {handle} already delivered, skipping")
            return {"delivered": False, "reason": "already_delivered"}

    except SupabaseClientError as e:
        logger.warning(f"Could not read notification {handle}, retrying: {e}")
        raise self.retry(exc=e)

    payload = payload_from_row(row)
    published = publish_notification(payload, row.get("fire_at"))
    logger.info(f"Delivered {payload.kind.value} for task {payload.task_id} (published={published})")
    return {"delivered": published, "task_id": payload.task_id, "kind": payload.kind.value}

# =============================================================================
# app/websocket/broadcast.py - Cross-Process Broadcasting
# =============================================================================
# Lets Celery workers hand fired alerts to the API process, which owns the
# WebSocket connections.
#
# Uses Redis pub/sub for cross-process communication:
# - Workers call publish_notification() when an alert fires
# - FastAPI subscribes and forwards to the user's WebSocket clients
# =============================================================================

import json
import logging
from typing import Any

from core.models.notification import NotificationPayload

logger = logging.getLogger(__name__)

# Redis channel for WebSocket events
WEBSOCKET_CHANNEL = "cellendar:websocket:events"


def get_redis_client():
    """Get a Redis client for pub/sub operations."""
    import redis
    from app.config import settings
    return redis.from_url(settings.REDIS_URL)


def notification_message(payload: NotificationPayload, fire_at: str | None = None) -> dict[str, Any]:
    """The event a client receives when an alert fires."""
    return {
        "type": "notification",
        "kind": payload.kind.value,
        "task_id": payload.task_id,
        "title": payload.title,
        "body": payload.body,
        "fire_at": fire_at,
    }


def publish_event(user_id: str, event_type: str, data: dict[str, Any]) -> bool:
    """
    Publish an event that will be broadcast to a user's WebSocket clients.

    Args:
        user_id: The user to deliver to
        event_type: Event type (notification)
        data: Event data to include

    Returns:
        bool: True if published successfully
    """
    try:
        client = get_redis_client()
        message = json.dumps({
            "user_id": user_id,
            **data,
            "type": event_type,
        })
        client.publish(WEBSOCKET_CHANNEL, message)
        logger.debug(f"Published {event_type} event for user {user_id}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish event: {e}")
        return False


def publish_notification(payload: NotificationPayload, fire_at: str | None = None) -> bool:
    """Publish a fired alert for delivery to its owner."""
    if not payload.user_id:
        logger.warning(f"Notification for task {payload.task_id} has no owner, dropping")
        return False
    return publish_event(
        user_id=payload.user_id,
        event_type="notification",
        data=notification_message(payload, fire_at),
    )

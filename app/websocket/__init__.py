# =============================================================================
# app/websocket/__init__.py - WebSocket Module
# =============================================================================
# Delivers fired reminders and overdue alerts to connected clients.
#
# Usage:
#   # From the API process
#   from app.websocket import websocket_manager
#   await websocket_manager.broadcast(user_id, {"type": "notification", ...})
#
#   # From Celery workers
#   from app.websocket.broadcast import publish_notification
#   publish_notification(payload)
# =============================================================================

from app.websocket.manager import websocket_manager
from app.websocket.broadcast import (
    publish_event,
    publish_notification,
    notification_message,
    WEBSOCKET_CHANNEL,
)

__all__ = [
    "websocket_manager",
    "publish_event",
    "publish_notification",
    "notification_message",
    "WEBSOCKET_CHANNEL",
]

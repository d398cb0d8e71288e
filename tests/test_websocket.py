# =============================================================================
# tests/test_websocket.py - Alert Delivery Tests
# =============================================================================
# ConnectionManager fan-out, the Redis publish used by workers, and the
# /ws/notifications endpoint.
#
# Run with: pytest tests/test_websocket.py -v
# =============================================================================

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from starlette.websockets import WebSocketDisconnect

from app.websocket.broadcast import WEBSOCKET_CHANNEL, publish_notification
from app.websocket.manager import ConnectionManager
from core.models.notification import NotificationKind, NotificationPayload


def payload(user_id="u1"):
    return NotificationPayload(
        task_id="t1",
        kind=NotificationKind.OVERDUE,
        user_id=user_id,
        title="Overdue Task Alert",
        body="Feed flask is overdue!",
    )


class TestConnectionManager:
    """Tests for ConnectionManager."""

    def test_broadcast_reaches_every_device(self):
        manager = ConnectionManager()
        phone, laptop = AsyncMock(), AsyncMock()
        asyncio.run(manager.connect("u1", phone))
        asyncio.run(manager.connect("u1", laptop))

        sent = asyncio.run(manager.broadcast("u1", {"type": "notification"}))

        assert sent == 2
        phone.send_json.assert_awaited_once_with({"type": "notification"})
        assert manager.get_connection_count("u1") == 2

    def test_failed_connection_is_dropped(self):
        manager = ConnectionManager()
        alive, dead = AsyncMock(), AsyncMock()
        dead.send_json.side_effect = RuntimeError("closed")
        asyncio.run(manager.connect("u1", alive))
        asyncio.run(manager.connect("u1", dead))

        assert asyncio.run(manager.broadcast("u1", {"type": "notification"})) == 1
        assert manager.get_connection_count() == 1

    def test_no_connections(self):
        manager = ConnectionManager()
        assert asyncio.run(manager.broadcast("nobody", {"type": "notification"})) == 0

    def test_disconnect_last_socket_forgets_user(self):
        manager = ConnectionManager()
        socket = AsyncMock()
        asyncio.run(manager.connect("u1", socket))

        manager.disconnect("u1", socket)

        assert manager.get_connected_users() == []


class TestPublishNotification:
    """Tests for publish_notification()."""

    @patch("app.websocket.broadcast.get_redis_client")
    def test_publishes_to_channel(self, mock_redis):
        redis_client = MagicMock()
        mock_redis.return_value = redis_client

        assert publish_notification(payload(), "2024-06-15T13:00:00+00:00") is True

        channel, raw = redis_client.publish.call_args[0]
        message = json.loads(raw)
        assert channel == WEBSOCKET_CHANNEL
        assert message["user_id"] == "u1"
        assert message["type"] == "notification"
        assert message["kind"] == "overdue"
        assert message["body"] == "Feed flask is overdue!"

    @patch("app.websocket.broadcast.get_redis_client")
    def test_redis_failure_returns_false(self, mock_redis):
        mock_redis.return_value.publish.side_effect = ConnectionError("redis down")
        assert publish_notification(payload()) is False

    def test_ownerless_payload_is_dropped(self):
        assert publish_notification(payload(user_id=None)) is False


class TestNotificationsSocket:
    """Tests for /ws/notifications."""

    def test_connect_and_ping(self, client, user_id):
        from .fakes import make_token

        with client.websocket_connect(f"/ws/notifications?token={make_token(user_id)}") as ws:
            hello = ws.receive_json()
            assert hello["type"] == "connected"
            assert hello["user_id"] == user_id
            ws.send_text("ping")
            assert ws.receive_text() == "pong"

    def test_bad_token_is_closed(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws/notifications?token=bogus") as ws:
                ws.receive_json()
        assert exc_info.value.code == 4001


class TestDispatchDue:
    """Tests for the in-memory backend's dispatch step."""

    def test_undelivered_alert_is_logged(self, caplog):
        from datetime import datetime, timedelta, timezone

        from app.main import dispatch_due
        from core.scheduling import InMemoryNotificationScheduler

        now = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
        scheduler = InMemoryNotificationScheduler()
        scheduler.schedule_once(now - timedelta(minutes=5), payload("u1"))
        scheduler.schedule_once(now - timedelta(minutes=1), payload("u2"))
        manager = ConnectionManager()
        socket = AsyncMock()
        asyncio.run(manager.connect("u1", socket))

        with patch("app.main.websocket_manager", manager), caplog.at_level("DEBUG", logger="app.main"):
            delivered = asyncio.run(dispatch_due(scheduler, now))

        assert delivered == 1
        assert scheduler.list_scheduled() == []
        socket.send_json.assert_awaited_once()
        assert "No open connection for user u2" in caplog.text
        assert "overdue alert for task t1 not delivered" in caplog.text

# =============================================================================
# tests/test_workers.py - Celery Delivery and Scheduler Tests
# =============================================================================
# The Celery task body is called directly with .run(); Supabase and Redis
# are patched out. No broker is needed.
#
# Run with: pytest tests/test_workers.py -v
# =============================================================================

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from core.models.notification import NotificationKind, NotificationPayload
from core.scheduling import NotificationScheduler, SchedulerUnavailableError
from core.services.reminder_service import ReminderService
from lib.supabase_client import SupabaseClientError
from workers.scheduler import CeleryNotificationScheduler
from workers.tasks import deliver_notification, payload_from_row

FIRE_AT = datetime(2024, 6, 15, 14, 0, tzinfo=timezone.utc)


def stored_row(handle="h1", user_id="u1", task_id="t1", kind="reminder"):
    return {
        "id": handle,
        "user_id": user_id,
        "task_id": task_id,
        "kind": kind,
        "title": "Cell Culture Task Reminder",
        "body": "Feed flask is due in 2 hours",
        "fire_at": FIRE_AT.isoformat(),
    }


class TestDeliverNotification:
    """Tests for the deliver_notification Celery task."""

    @patch("workers.tasks.publish_notification")
    @patch("workers.tasks.SupabaseClient")
    def test_delivers_and_claims(self, mock_store, mock_publish):
        mock_store.fetch_scheduled_notification.return_value = stored_row()
        mock_store.delete_scheduled_notification.return_value = True
        mock_publish.return_value = True

        result = deliver_notification.run("h1")

        assert result == {"delivered": True, "task_id": "t1", "kind": "reminder"}
        mock_store.delete_scheduled_notification.assert_called_once_with("h1")
        payload, fire_at = mock_publish.call_args[0]
        assert payload.user_id == "u1"
        assert fire_at == FIRE_AT.isoformat()

    @patch("workers.tasks.publish_notification")
    @patch("workers.tasks.SupabaseClient")
    def test_cancelled_alert_is_skipped(self, mock_store, mock_publish):
        mock_store.fetch_scheduled_notification.return_value = None

        result = deliver_notification.run("h1")

        assert result == {"delivered": False, "reason": "cancelled"}
        mock_publish.assert_not_called()

    @patch("workers.tasks.publish_notification")
    @patch("workers.tasks.SupabaseClient")
    def test_redelivered_message_is_skipped(self, mock_store, mock_publish):
        mock_store.fetch_scheduled_notification.return_value = stored_row()
        mock_store.delete_scheduled_notification.return_value = False

        result = deliver_notification.run("h1")

        assert result["reason"] == "already_delivered"
        mock_publish.assert_not_called()

    @patch("workers.tasks.SupabaseClient")
    def test_store_failure_propagates_for_retry(self, mock_store):
        mock_store.fetch_scheduled_notification.side_effect = SupabaseClientError(message="timeout")

        with pytest.raises(SupabaseClientError):
            deliver_notification.run("h1")

    def test_payload_from_row(self):
        payload = payload_from_row(stored_row(kind="overdue"))
        assert payload.kind is NotificationKind.OVERDUE
        assert payload.task_id == "t1"


class TestCeleryNotificationScheduler:
    """Tests for CeleryNotificationScheduler with a mocked store and Celery app."""

    @pytest.fixture
    def store(self):
        return MagicMock()

    @pytest.fixture
    def celery(self):
        return MagicMock()

    @pytest.fixture
    def scheduler(self, store, celery):
        return CeleryNotificationScheduler(store=store, app=celery)

    def test_satisfies_scheduler_protocol(self, scheduler):
        assert isinstance(scheduler, NotificationScheduler)

    @patch("workers.scheduler.deliver_notification")
    def test_schedule_records_row_and_enqueues_with_eta(self, mock_task, scheduler, store):
        payload = NotificationPayload(task_id="t1", kind=NotificationKind.REMINDER, user_id="u1", title="x", body="y")

        handle = scheduler.schedule_once(FIRE_AT, payload)

        row = store.insert_scheduled_notification.call_args[0][0]
        assert row["id"] == handle
        assert row["task_id"] == "t1"
        assert row["kind"] == "reminder"
        mock_task.apply_async.assert_called_once_with(args=[handle], eta=FIRE_AT, task_id=handle)

    @patch("workers.scheduler.deliver_notification")
    def test_enqueue_failure_removes_row(self, mock_task, scheduler, store):
        mock_task.apply_async.side_effect = ConnectionError("broker down")
        payload = NotificationPayload(task_id="t1", kind=NotificationKind.OVERDUE, user_id="u1")

        with pytest.raises(SchedulerUnavailableError):
            scheduler.schedule_once(FIRE_AT, payload)

        handle = store.insert_scheduled_notification.call_args[0][0]["id"]
        store.delete_scheduled_notification.assert_called_once_with(handle)

    def test_cancel_deletes_row_and_revokes(self, scheduler, store, celery):
        scheduler.cancel("h1")

        store.delete_scheduled_notification.assert_called_once_with("h1")
        celery.control.revoke.assert_called_once_with("h1")

    def test_revoke_failure_is_tolerated(self, scheduler, store, celery):
        celery.control.revoke.side_effect = ConnectionError("broker down")
        scheduler.cancel("h1")
        store.delete_scheduled_notification.assert_called_once_with("h1")

    def test_list_and_cancel_all(self, scheduler, store, celery):
        store.list_scheduled_notifications.return_value = [stored_row("h1"), stored_row("h2", kind="overdue")]

        entries = scheduler.list_scheduled("u1")
        assert [entry.handle for entry in entries] == ["h1", "h2"]
        assert entries[0].fire_at == FIRE_AT

        assert scheduler.cancel_all("u1") == 2
        assert celery.control.revoke.call_count == 2

    def test_list_accepts_trimmed_fractional_seconds(self, scheduler, store):
        """Postgres drops trailing zeros, leaving five-digit fractions."""
        row = stored_row("h1")
        row["fire_at"] = "2024-06-15T14:00:00.12345+00:00"
        store.list_scheduled_notifications.return_value = [row]

        [entry] = scheduler.list_scheduled("u1")

        assert entry.fire_at == FIRE_AT.replace(microsecond=123450)

    def test_cancel_for_task_works_with_trimmed_timestamps(self, scheduler, store, celery):
        row = stored_row("h1")
        row["fire_at"] = "2024-06-15T14:00:00.5Z"
        store.list_scheduled_notifications.return_value = [row]
        reminders = ReminderService(scheduler)

        reminders.cancel_for_task("t1", owner="u1")

        assert reminders.warnings == []
        store.delete_scheduled_notification.assert_called_once_with("h1")

# =============================================================================
# tests/test_task_service.py - Task Service and Passage Counter Tests
# =============================================================================
# Completion idempotency, the passage increment, partial failure, task
# CRUD and its effect on scheduled alerts, and the today / overdue lists.
#
# Run with: pytest tests/test_task_service.py -v
# =============================================================================

from datetime import datetime, timedelta, timezone
from unittest.mock import patch
from uuid import uuid4

import pytest

from app.exceptions import (
    CultureNotFoundError,
    PartialCompletionError,
    TaskNotFoundError,
    UpstreamError,
)
from core.models.notification import NotificationKind, NotificationSettingsUpdate
from core.models.task import TaskCreate, TaskFilter, TaskType, TaskUpdate
from lib.utils import parse_timestamp


def alerts_for(scheduler, task_id):
    return [entry for entry in scheduler.list_scheduled() if entry.payload.task_id == task_id]


class TestCompleteTask:
    """Tests for TaskService.complete_task()."""

    def test_passaging_increments_culture(self, task_service, store, add_task, culture, user_id, now):
        task = add_task(now + timedelta(hours=3), task_type="passaging")

        result = task_service.complete_task(task["id"], user_id)

        assert result.already_completed is False
        assert result.task.is_completed is True
        assert result.task.completed_date == now
        assert result.culture.passage_number == 4
        assert result.culture.last_action_date == now
        stored = store.cultures[culture["id"]]
        assert stored["passage_number"] == 4
        assert parse_timestamp(stored["last_action_date"]) == now

    def test_second_completion_is_a_noop(self, task_service, store, add_task, culture, user_id, now):
        task = add_task(now + timedelta(hours=3), task_type="passaging")

        task_service.complete_task(task["id"], user_id)
        again = task_service.complete_task(task["id"], user_id)

        assert again.already_completed is True
        assert again.task.is_completed is True
        assert store.cultures[culture["id"]]["passage_number"] == 4
        assert store.increment_calls == 1

    @pytest.mark.parametrize("task_type", ["media_change", "observation"])
    def test_non_passaging_leaves_culture_unchanged(self, task_service, store, add_task, culture, user_id, now, task_type):
        before = dict(store.cultures[culture["id"]])
        task = add_task(now + timedelta(hours=3), task_type=task_type)

        result = task_service.complete_task(task["id"], user_id)

        assert result.task.is_completed is True
        assert result.culture.passage_number == 3
        assert store.cultures[culture["id"]] == before
        assert store.increment_calls == 0

    def test_completion_cancels_both_alerts(self, task_service, scheduler, culture, user_id, now):
        task = task_service.create_task(user_id, TaskCreate(
            culture_id=culture["id"],
            type=TaskType.MEDIA_CHANGE,
            title="Feed",
            scheduled_date=now + timedelta(hours=5),
        ))
        assert len(alerts_for(scheduler, task.id)) == 2

        task_service.complete_task(task.id, user_id)

        assert alerts_for(scheduler, task.id) == []

    def test_increment_failure_rolls_back_completion(self, task_service, store, scheduler, add_task, culture, user_id, now):
        task = add_task(now + timedelta(hours=3), task_type="passaging")
        store.fail_increment = True

        with pytest.raises(UpstreamError) as exc_info:
            task_service.complete_task(task["id"], user_id)

        assert exc_info.value.status_code == 500
        assert exc_info.value.details["retryable"] is True
        assert store.tasks[task["id"]]["is_completed"] is False
        assert store.tasks[task["id"]]["completed_date"] is None
        assert store.cultures[culture["id"]]["passage_number"] == 3

    def test_retry_after_failure_applies_passage_once(self, task_service, store, add_task, culture, user_id, now):
        task = add_task(now + timedelta(hours=3), task_type="passaging")
        store.fail_increment = True
        with pytest.raises(UpstreamError):
            task_service.complete_task(task["id"], user_id)

        store.fail_increment = False
        result = task_service.complete_task(task["id"], user_id)
        again = task_service.complete_task(task["id"], user_id)

        assert result.already_completed is False
        assert result.culture.passage_number == 4
        assert again.already_completed is True
        assert store.cultures[culture["id"]]["passage_number"] == 4

    def test_interruption_between_claim_and_increment_loses_nothing(self, task_service, store, add_task, culture, user_id, now):
        """A process dying mid-completion leaves the task open, so completing it again passages the culture."""
        task = add_task(now + timedelta(hours=3), task_type="passaging")

        with patch.object(store, "increment_passage_number", side_effect=KeyboardInterrupt):
            with pytest.raises(KeyboardInterrupt):
                task_service.complete_task(task["id"], user_id)

        assert store.tasks[task["id"]]["is_completed"] is False

        result = task_service.complete_task(task["id"], user_id)

        assert result.already_completed is False
        assert store.cultures[culture["id"]]["passage_number"] == 4

    def test_two_step_partial_failure_disarms_and_reraises(self, task_service, store, scheduler, culture, user_id, now):
        task = task_service.create_task(user_id, TaskCreate(
            culture_id=culture["id"],
            type=TaskType.PASSAGING,
            title="Split",
            scheduled_date=now + timedelta(hours=5),
        ))
        assert len(alerts_for(scheduler, task.id)) == 2

        def complete_without_passage(task_id, owner, completed_at):
            store.claim_task_completion(task_id, owner, completed_at)
            raise PartialCompletionError(task_id, culture["id"], "connection reset")

        with patch.object(store, "complete_task", side_effect=complete_without_passage):
            with pytest.raises(PartialCompletionError) as exc_info:
                task_service.complete_task(task.id, user_id)

        assert exc_info.value.code == "PASSAGE_UPDATE_FAILED"
        assert exc_info.value.details["task_completed"] is True
        assert store.tasks[task.id]["is_completed"] is True
        assert alerts_for(scheduler, task.id) == []

    def test_missing_culture_is_rejected_before_any_write(self, task_service, store, add_task, user_id, now):
        task = add_task(now + timedelta(hours=3), task_type="passaging", culture_id=str(uuid4()))
        writes_before = store.writes

        with pytest.raises(CultureNotFoundError):
            task_service.complete_task(task["id"], user_id)

        assert store.tasks[task["id"]]["is_completed"] is False
        assert store.writes == writes_before

    def test_unknown_task(self, task_service, user_id):
        with pytest.raises(TaskNotFoundError):
            task_service.complete_task(str(uuid4()), user_id)

    def test_other_users_task_is_not_found(self, task_service, add_task, now):
        task = add_task(now)
        with pytest.raises(TaskNotFoundError):
            task_service.complete_task(task["id"], str(uuid4()))

    def test_lost_race_reports_already_completed(self, task_service, store, add_task, culture, user_id, now):
        task = add_task(now + timedelta(hours=3), task_type="passaging")

        def claim_elsewhere(task_id, owner, completed_at):
            store.tasks[task_id]["is_completed"] = True
            store.tasks[task_id]["completed_date"] = completed_at.isoformat()
            return None

        with patch.object(store, "claim_task_completion", side_effect=claim_elsewhere):
            result = task_service.complete_task(task["id"], user_id)

        assert result.already_completed is True
        assert store.increment_calls == 0

    def test_n_passaging_completions_add_n(self, task_service, store, add_task, culture, user_id, now):
        tasks = [add_task(now + timedelta(days=i), task_type="passaging") for i in range(4)]

        for task in tasks:
            task_service.complete_task(task["id"], user_id)
            task_service.complete_task(task["id"], user_id)

        assert store.cultures[culture["id"]]["passage_number"] == 7


class TestCreateTask:
    """Tests for TaskService.create_task()."""

    def test_creates_and_arms_alerts(self, task_service, scheduler, culture, user_id, now):
        task = task_service.create_task(user_id, TaskCreate(
            culture_id=culture["id"],
            type=TaskType.PASSAGING,
            title="Split 1:4",
            scheduled_date=now + timedelta(hours=6),
            reminder_hours=4,
        ))

        assert task.is_completed is False
        assert task.completed_date is None
        assert task.culture.name == "HeLa flask A"
        fire_times = sorted(entry.fire_at for entry in alerts_for(scheduler, task.id))
        assert fire_times == [now + timedelta(hours=2), now + timedelta(hours=7)]

    def test_reminder_hours_defaults_to_user_setting(self, task_service, settings_service, culture, user_id, now):
        settings_service.update_settings(user_id, NotificationSettingsUpdate(default_reminder_hours=12))

        task = task_service.create_task(user_id, TaskCreate(
            culture_id=culture["id"],
            type=TaskType.OBSERVATION,
            title="Check confluence",
            scheduled_date=now + timedelta(days=1),
        ))

        assert task.reminder_hours == 12

    def test_unknown_culture_creates_nothing(self, task_service, store, user_id, now):
        with pytest.raises(CultureNotFoundError):
            task_service.create_task(user_id, TaskCreate(
                culture_id=uuid4(),
                type=TaskType.MEDIA_CHANGE,
                title="Feed",
                scheduled_date=now,
            ))
        assert store.tasks == {}

    def test_past_task_gets_only_overdue_alert(self, task_service, scheduler, culture, user_id, now):
        task = task_service.create_task(user_id, TaskCreate(
            culture_id=culture["id"],
            type=TaskType.MEDIA_CHANGE,
            title="Feed",
            scheduled_date=now - timedelta(hours=1),
        ))

        [entry] = alerts_for(scheduler, task.id)
        assert entry.payload.kind is NotificationKind.OVERDUE
        assert entry.fire_at == now

    def test_scheduler_outage_is_a_warning(self, store, clock, culture, user_id, now):
        from core.services import ReminderService, SettingsService, TaskService

        from .fakes import FailingScheduler

        reminders = ReminderService(FailingScheduler(), clock=clock)
        service = TaskService(store, reminders, SettingsService(store, reminders), clock=clock)

        task = service.create_task(user_id, TaskCreate(
            culture_id=culture["id"],
            type=TaskType.MEDIA_CHANGE,
            title="Feed",
            scheduled_date=now + timedelta(hours=5),
        ))

        assert task.id in store.tasks
        assert len(service.warnings) == 2


class TestUpdateTask:
    """Tests for TaskService.update_task()."""

    def test_reschedule_moves_alerts(self, task_service, scheduler, culture, user_id, now):
        task = task_service.create_task(user_id, TaskCreate(
            culture_id=culture["id"],
            type=TaskType.MEDIA_CHANGE,
            title="Feed",
            scheduled_date=now + timedelta(hours=5),
        ))

        updated = task_service.update_task(task.id, user_id, TaskUpdate(scheduled_date=now + timedelta(days=1)))

        assert updated.scheduled_date == now + timedelta(days=1)
        fire_times = sorted(entry.fire_at for entry in alerts_for(scheduler, task.id))
        assert fire_times == [now + timedelta(hours=22), now + timedelta(hours=25)]

    def test_marking_complete_goes_through_passage_counter(self, task_service, store, add_task, culture, user_id, now):
        task = add_task(now, task_type="passaging")

        updated = task_service.update_task(task["id"], user_id, TaskUpdate(is_completed=True))

        assert updated.is_completed is True
        assert store.cultures[culture["id"]]["passage_number"] == 4

    def test_reopen_clears_completed_date_and_rearms(self, task_service, store, scheduler, add_task, user_id, now):
        task = add_task(now + timedelta(hours=5), is_completed=True)

        reopened = task_service.update_task(task["id"], user_id, TaskUpdate(is_completed=False))

        assert reopened.is_completed is False
        assert reopened.completed_date is None
        assert store.tasks[task["id"]]["completed_date"] is None
        assert len(alerts_for(scheduler, task["id"])) == 2

    def test_reopening_does_not_decrement_passage(self, task_service, store, add_task, culture, user_id, now):
        task = add_task(now, task_type="passaging")
        task_service.complete_task(task["id"], user_id)

        task_service.update_task(task["id"], user_id, TaskUpdate(is_completed=False))

        assert store.cultures[culture["id"]]["passage_number"] == 4

    def test_completing_edit_with_missing_culture_saves_nothing(self, task_service, store, add_task, user_id, now):
        task = add_task(now, task_type="passaging", culture_id=str(uuid4()))
        writes_before = store.writes

        with pytest.raises(CultureNotFoundError):
            task_service.update_task(task["id"], user_id, TaskUpdate(title="Split 1:4", is_completed=True))

        assert store.tasks[task["id"]]["title"] == "Feed flask"
        assert store.tasks[task["id"]]["is_completed"] is False
        assert store.writes == writes_before

    def test_switching_to_passaging_while_completing_checks_culture(self, task_service, store, add_task, user_id, now):
        task = add_task(now, task_type="observation", culture_id=str(uuid4()))

        with pytest.raises(CultureNotFoundError):
            task_service.update_task(task["id"], user_id, TaskUpdate(type=TaskType.PASSAGING, is_completed=True))

        assert store.tasks[task["id"]]["type"] == "observation"


class TestDeleteTask:
    """Tests for TaskService.delete_task()."""

    def test_delete_removes_task_and_alerts(self, task_service, store, scheduler, culture, user_id, now):
        task = task_service.create_task(user_id, TaskCreate(
            culture_id=culture["id"],
            type=TaskType.MEDIA_CHANGE,
            title="Feed",
            scheduled_date=now + timedelta(hours=5),
        ))

        task_service.delete_task(task.id, user_id)

        assert task.id not in store.tasks
        assert alerts_for(scheduler, task.id) == []

    def test_delete_unknown(self, task_service, user_id):
        with pytest.raises(TaskNotFoundError):
            task_service.delete_task(str(uuid4()), user_id)


class TestListings:
    """Tests for list_tasks / list_today / list_overdue."""

    def test_overdue_list(self, task_service, add_task, user_id, now):
        add_task(now - timedelta(days=2), title="old")
        add_task(now - timedelta(hours=1), title="recent")
        add_task(now - timedelta(hours=3), is_completed=True, title="done")
        add_task(now + timedelta(hours=1), title="future")

        overdue = task_service.list_overdue(user_id)

        assert [task.title for task in overdue] == ["old", "recent"]

    def test_task_becomes_overdue_without_a_write(self, task_service, store, clock, add_task, user_id, now):
        add_task(now + timedelta(minutes=30), title="soon")
        writes = store.writes
        assert task_service.list_overdue(user_id) == []

        clock.advance(hours=1)

        assert [task.title for task in task_service.list_overdue(user_id)] == ["soon"]
        assert store.writes == writes

    def test_today_uses_calendar_day_in_zone(self, task_service, add_task, user_id, now):
        add_task(datetime(2024, 6, 15, 0, 0, tzinfo=timezone.utc), title="midnight")
        add_task(datetime(2024, 6, 15, 23, 59, tzinfo=timezone.utc), title="late", is_completed=True)
        add_task(datetime(2024, 6, 16, 0, 0, tzinfo=timezone.utc), title="tomorrow")
        add_task(datetime(2024, 6, 14, 23, 59, tzinfo=timezone.utc), title="yesterday")

        today = task_service.list_today(user_id)

        assert [task.title for task in today] == ["midnight", "late"]

    def test_today_in_other_zone(self, task_service, add_task, user_id):
        # 12:00 UTC is 08:00 in New York; the local day runs 04:00 to 04:00 UTC
        add_task(datetime(2024, 6, 15, 3, 0, tzinfo=timezone.utc), title="local yesterday")
        add_task(datetime(2024, 6, 16, 3, 0, tzinfo=timezone.utc), title="local today")

        today = task_service.list_today(user_id, zone="America/New_York")

        assert [task.title for task in today] == ["local today"]

    def test_list_filter_and_order(self, task_service, add_task, user_id, now):
        add_task(now + timedelta(hours=5), title="b")
        add_task(now + timedelta(hours=1), title="a")
        add_task(now - timedelta(hours=1), title="late")

        assert [t.title for t in task_service.list_tasks(user_id)] == ["late", "a", "b"]
        assert [t.title for t in task_service.list_tasks(user_id, state=TaskFilter.PENDING)] == ["a", "b"]

    def test_list_by_culture(self, task_service, store, add_task, user_id, now):
        other = store.insert_culture({
            "id": str(uuid4()),
            "user_id": user_id,
            "name": "CHO",
            "cell_type": "CHO-K1",
            "start_date": now.isoformat(),
        })
        add_task(now, title="hela")
        add_task(now, title="cho", culture_id=other["id"])

        assert [t.title for t in task_service.list_tasks(user_id, culture_id=other["id"])] == ["cho"]

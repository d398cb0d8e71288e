# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Builds services around an in-memory store, scheduler and fixed clock
# - Provides a TestClient wired to the same fakes plus a signed token
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-for-hs256")
os.environ.setdefault("NOTIFICATION_BACKEND", "memory")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from core.models.notification import NotificationSettings
from core.scheduling import InMemoryNotificationScheduler
from core.services import CultureService, ReminderService, SettingsService, TaskService
from lib.utils import to_iso

from .fakes import FixedClock, InMemoryStore, make_token

# 2024-06-15 12:00 UTC, a Saturday
NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def user_id():
    return str(uuid4())


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def scheduler():
    return InMemoryNotificationScheduler()


@pytest.fixture
def notification_settings():
    return NotificationSettings()


@pytest.fixture
def reminders(scheduler, clock):
    return ReminderService(scheduler, clock=clock)


@pytest.fixture
def settings_service(store, reminders):
    return SettingsService(store, reminders)


@pytest.fixture
def task_service(store, reminders, settings_service, clock):
    return TaskService(store, reminders, settings_service, clock=clock)


@pytest.fixture
def culture_service(store, reminders, clock):
    return CultureService(store, reminders, clock=clock)


@pytest.fixture
def culture(store, user_id):
    """A stored culture at passage 3."""
    return store.insert_culture({
        "id": str(uuid4()),
        "user_id": user_id,
        "name": "HeLa flask A",
        "cell_type": "HeLa",
        "start_date": to_iso(datetime(2024, 6, 1, tzinfo=timezone.utc)),
        "passage_number": 3,
        "last_action_date": to_iso(datetime(2024, 6, 10, tzinfo=timezone.utc)),
        "notes": "",
        "status": "active",
    })


@pytest.fixture
def add_task(store, user_id, culture):
    """Factory that stores a task against `culture`."""

    def _add(
        scheduled_date: datetime,
        task_type: str = "media_change",
        is_completed: bool = False,
        reminder_hours: int = 2,
        title: str = "Feed flask",
        culture_id: str | None = None,
    ) -> dict:
        return store.insert_task({
            "id": str(uuid4()),
            "user_id": user_id,
            "culture_id": culture_id or culture["id"],
            "type": task_type,
            "title": title,
            "description": None,
            "scheduled_date": to_iso(scheduled_date),
            "reminder_hours": reminder_hours,
            "is_completed": is_completed,
            "completed_date": to_iso(scheduled_date) if is_completed else None,
        })

    return _add


@pytest.fixture
def client(store, scheduler, clock):
    """TestClient whose dependencies use the in-memory fakes."""
    from fastapi.testclient import TestClient

    from app.dependencies import get_clock, get_notification_scheduler, get_store
    from app.main import app

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_notification_scheduler] = lambda: scheduler
    app.dependency_overrides[get_clock] = lambda: clock

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user_id):
    return {"Authorization": f"Bearer {make_token(user_id)}"}

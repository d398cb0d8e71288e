# =============================================================================
# tests/test_models.py - Pydantic Model Tests
# =============================================================================
# Unit tests for the Pydantic models to ensure:
# - Valid data is accepted and parsed correctly
# - Invalid data raises ValidationError
# - Models serialize to JSON properly
# - Default values work as expected
#
# Run with: pytest tests/test_models.py -v
# =============================================================================

from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from core.models import (
    Credentials,
    Culture,
    CultureCreate,
    CultureStatus,
    CultureSummary,
    CultureUpdate,
    DataBundle,
    NotificationSettings,
    NotificationSettingsUpdate,
    Task,
    TaskCreate,
    TaskType,
    TaskUpdate,
)

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Culture Model Tests
# =============================================================================

class TestCultureModels:
    """Tests for Culture-related models."""

    def test_valid_culture_row(self):
        """Test parsing a row as PostgREST returns it."""
        # Arrange: timestamps arrive as ISO strings
        row = {
            "id": str(uuid4()),
            "user_id": str(uuid4()),
            "name": "HeLa flask A",
            "cell_type": "HeLa",
            "start_date": "2024-06-01T00:00:00+00:00",
            "passage_number": 3,
            "last_action_date": None,
            "notes": "",
            "status": "active",
            "created_at": "2024-06-01T00:00:00+00:00",
        }

        # Act
        culture = Culture.model_validate(row)

        # Assert
        assert culture.passage_number == 3
        assert culture.status is CultureStatus.ACTIVE
        assert culture.start_date.tzinfo is not None

    def test_create_defaults(self):
        """New cultures start at passage 0 with no notes."""
        culture = CultureCreate(name="Vero", cell_type="Vero", start_date=NOW)
        assert culture.passage_number == 0
        assert culture.notes is None

    def test_create_requires_name(self):
        """Test that empty name is rejected."""
        with pytest.raises(ValidationError):
            CultureCreate(name="", cell_type="Vero", start_date=NOW)

    def test_negative_passage_rejected(self):
        """passage_number is never negative."""
        with pytest.raises(ValidationError):
            CultureUpdate(passage_number=-1)

    def test_unknown_status_rejected(self):
        """Test that status must be a known CultureStatus."""
        with pytest.raises(ValidationError):
            CultureUpdate(status="frozen")

    def test_summary_from_culture(self):
        """CultureSummary carries what a completion reports back."""
        culture = Culture(id="c1", name="A", cell_type="HeLa", start_date=NOW, passage_number=7)
        summary = CultureSummary.from_culture(culture)
        assert summary.passage_number == 7
        assert summary.status is CultureStatus.ACTIVE


# =============================================================================
# Task Model Tests
# =============================================================================

class TestTaskModels:
    """Tests for Task-related models."""

    def test_joined_culture_is_exposed_as_culture(self):
        """Rows fetched with the cultures join carry the culture under 'cultures'."""
        task = Task.model_validate({
            "id": "t1",
            "culture_id": "c1",
            "type": "passaging",
            "title": "Split",
            "scheduled_date": "2024-06-15T09:00:00Z",
            "cultures": {"id": "c1", "name": "HeLa flask A", "status": "active"},
        })

        assert task.culture.name == "HeLa flask A"
        assert task.type is TaskType.PASSAGING
        assert task.is_completed is False

    def test_create_parses_uuid_and_strips_title(self):
        """Test TaskCreate coercion."""
        culture_id = uuid4()
        task = TaskCreate(
            culture_id=str(culture_id),
            type="media_change",
            title="  Feed  ",
            scheduled_date="2024-06-15T09:00:00Z",
        )
        assert task.culture_id == culture_id
        assert isinstance(task.culture_id, UUID)
        assert task.title == "Feed"
        assert task.reminder_hours is None

    @pytest.mark.parametrize("hours", [-1, 169])
    def test_reminder_hours_range(self, hours):
        """reminder_hours must be within 0..168."""
        with pytest.raises(ValidationError):
            TaskCreate(culture_id=uuid4(), type="observation", title="Look", scheduled_date=NOW, reminder_hours=hours)

    @pytest.mark.parametrize("hours", [0, 168])
    def test_reminder_hours_bounds_are_inclusive(self, hours):
        task = TaskCreate(culture_id=uuid4(), type="observation", title="Look", scheduled_date=NOW, reminder_hours=hours)
        assert task.reminder_hours == hours

    def test_unknown_type_rejected(self):
        """Only media_change, passaging and observation exist."""
        with pytest.raises(ValidationError):
            TaskCreate(culture_id=uuid4(), type="harvest", title="x", scheduled_date=NOW)

    def test_missing_scheduled_date_rejected(self):
        with pytest.raises(ValidationError):
            TaskCreate(culture_id=uuid4(), type="observation", title="x")

    def test_update_is_partial(self):
        """Omitted fields are dropped from the dump."""
        update = TaskUpdate(title="New title")
        assert update.model_dump(exclude_none=True) == {"title": "New title"}


# =============================================================================
# Notification Model Tests
# =============================================================================

class TestNotificationModels:
    """Tests for notification settings models."""

    def test_defaults(self):
        """Test default settings for a brand new account."""
        settings = NotificationSettings()
        assert settings.enabled is True
        assert settings.default_reminder_hours == 2
        assert settings.overdue_alerts is True

    def test_update_range(self):
        with pytest.raises(ValidationError):
            NotificationSettingsUpdate(default_reminder_hours=200)


# =============================================================================
# Auth Model Tests
# =============================================================================

class TestCredentials:
    """Tests for Credentials."""

    def test_valid(self):
        creds = Credentials(email=" lab@example.com ", password="secret1")
        assert creds.email == "lab@example.com"

    @pytest.mark.parametrize("email", ["", "no-at-sign", "a@b"])
    def test_bad_email(self, email):
        with pytest.raises(ValidationError):
            Credentials(email=email, password="secret1")

    def test_short_password(self):
        with pytest.raises(ValidationError):
            Credentials(email="lab@example.com", password="12345")


# =============================================================================
# Serialization Tests
# =============================================================================

class TestSerialization:
    """Tests for model serialization."""

    def test_bundle_round_trips_through_json(self):
        """An exported bundle parses back into the same shape."""
        bundle = DataBundle(
            cultures=[Culture(id="c1", name="A", cell_type="HeLa", start_date=NOW)],
            tasks=[Task(id="t1", culture_id="c1", type=TaskType.OBSERVATION, title="Look", scheduled_date=NOW)],
            notification_settings=NotificationSettings(overdue_alerts=False),
            exported_at=NOW,
        )

        parsed = DataBundle.model_validate_json(bundle.model_dump_json())

        assert parsed.cultures[0].id == "c1"
        assert parsed.tasks[0].scheduled_date == NOW
        assert parsed.notification_settings.overdue_alerts is False

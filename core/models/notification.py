# =============================================================================
# core/models/notification.py - Notification Schemas
# =============================================================================
# - NotificationSettings: The per-user record read before every scheduling
#   decision (created with defaults on first access)
# - NotificationPayload: What a fired alert carries
# - ScheduledNotification: A pending fire-once alert as listed by a scheduler
# =============================================================================

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .task import MAX_REMINDER_HOURS, MIN_REMINDER_HOURS


class NotificationKind(str, Enum):
    """
    Which of a task's two alerts this is.

    - reminder: fires reminder_hours before the scheduled time
    - overdue: fires one hour after the scheduled time
    """
    REMINDER = "reminder"
    OVERDUE = "overdue"


class NotificationSettings(BaseModel):
    """
    Notification preferences for one user.

    Defaults match what a brand new account gets.
    """

    model_config = ConfigDict(extra="ignore")

    enabled: bool = True
    default_reminder_hours: int = Field(
        default=2,
        ge=MIN_REMINDER_HOURS,
        le=MAX_REMINDER_HOURS,
    )
    overdue_alerts: bool = True
    user_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class NotificationSettingsUpdate(BaseModel):
    """Partial update of notification settings."""

    enabled: bool | None = None
    default_reminder_hours: int | None = Field(
        default=None,
        ge=MIN_REMINDER_HOURS,
        le=MAX_REMINDER_HOURS,
    )
    overdue_alerts: bool | None = None


class NotificationPayload(BaseModel):
    """
    Data attached to a scheduled alert.

    task_id is what cancellation matches on.
    """

    model_config = ConfigDict(frozen=True)

    task_id: str
    kind: NotificationKind
    user_id: str | None = None
    title: str = ""
    body: str = ""


class ScheduledNotification(BaseModel):
    """A fire-once alert registered with a scheduler and not yet delivered."""

    model_config = ConfigDict(frozen=True)

    handle: str
    payload: NotificationPayload
    fire_at: datetime

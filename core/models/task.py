# =============================================================================
# core/models/task.py - Task Schemas
# =============================================================================
# These models define the API contract for task operations:
# - Task: A stored task row (optionally joined with its culture)
# - TaskCreate / TaskUpdate: Inputs for creating and editing
# - TaskResponse: A task plus its derived state, computed at read time
# - TaskState / TaskFilter: Classification used by listings
#
# `is_overdue` is never stored. It is a function of (scheduled_date,
# is_completed, now) and is recomputed for every response.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# Allowed range for a task's reminder offset (one week)
MIN_REMINDER_HOURS = 0
MAX_REMINDER_HOURS = 168


class TaskType(str, Enum):
    """Kind of work a task represents. Only passaging touches the culture."""
    MEDIA_CHANGE = "media_change"
    PASSAGING = "passaging"
    OBSERVATION = "observation"


class TaskState(str, Enum):
    """
    Classification of a task at a given instant.

    - pending: Not completed, scheduled time not yet passed
    - overdue: Not completed, scheduled time has passed
    - completed: Done
    """
    PENDING = "pending"
    OVERDUE = "overdue"
    COMPLETED = "completed"


class TaskFilter(str, Enum):
    """Listing criterion: either every task or one TaskState."""
    ALL = "all"
    PENDING = "pending"
    OVERDUE = "overdue"
    COMPLETED = "completed"


class CultureRef(BaseModel):
    """The slice of a culture embedded in task rows by the PostgREST join."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    status: str | None = None


class Task(BaseModel):
    """
    A scheduled action against one culture, as stored in the `tasks` table.

    Rows fetched with the `cultures(id, name, status)` join carry the
    culture under the `cultures` key; it is exposed here as `culture`.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    user_id: str | None = None
    culture_id: str
    type: TaskType
    title: str
    description: str | None = None
    scheduled_date: datetime
    completed_date: datetime | None = None
    is_completed: bool = False
    reminder_hours: int = Field(default=2, ge=MIN_REMINDER_HOURS, le=MAX_REMINDER_HOURS)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    culture: CultureRef | None = Field(default=None, alias="cultures")


class TaskCreate(BaseModel):
    """
    Input for creating a task.

    When reminder_hours is omitted the owner's default_reminder_hours
    setting is used.

    Example:
        {
            "culture_id": "550e8400-e29b-41d4-a716-446655440000",
            "type": "passaging",
            "title": "Split 1:4",
            "scheduled_date": "2024-01-20T09:00:00Z",
            "reminder_hours": 2
        }
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    culture_id: UUID
    type: TaskType
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    scheduled_date: datetime
    reminder_hours: int | None = Field(
        default=None,
        ge=MIN_REMINDER_HOURS,
        le=MAX_REMINDER_HOURS,
    )


class TaskUpdate(BaseModel):
    """
    Partial update for a task. Omitted fields are left unchanged.

    Setting is_completed to true goes through the completion flow
    (passage increment for passaging tasks); setting it to false clears
    completed_date and re-arms notifications.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    type: TaskType | None = None
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    scheduled_date: datetime | None = None
    reminder_hours: int | None = Field(
        default=None,
        ge=MIN_REMINDER_HOURS,
        le=MAX_REMINDER_HOURS,
    )
    is_completed: bool | None = None


class TaskResponse(BaseModel):
    """A task as returned to clients, with its state derived at response time."""

    id: str
    culture_id: str
    type: TaskType
    title: str
    description: str | None = None
    scheduled_date: datetime
    completed_date: datetime | None = None
    is_completed: bool
    reminder_hours: int
    is_overdue: bool
    state: TaskState
    culture: CultureRef | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

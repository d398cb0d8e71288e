# =============================================================================
# core/models/culture.py - Culture Schemas
# =============================================================================
# These models define the API contract for culture operations:
# - Culture: A stored cell culture row
# - CultureCreate / CultureUpdate: Inputs for creating and editing
# - CultureSummary: The slice returned alongside a completed task
#
# A culture owns its tasks: deleting a culture deletes every task that
# references it. The passage number only ever goes up.
# =============================================================================

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CultureStatus(str, Enum):
    """
    Lifecycle state of a culture.

    - active: Being maintained, tasks are scheduled against it
    - paused: Temporarily frozen or on hold
    - terminated: Discarded; kept for its history
    """
    ACTIVE = "active"
    PAUSED = "paused"
    TERMINATED = "terminated"


class Culture(BaseModel):
    """
    A tracked cell culture as stored in the `cultures` table.

    Example:
        {
            "id": "550e8400-e29b-41d4-a716-446655440000",
            "name": "HeLa flask A",
            "cell_type": "HeLa",
            "start_date": "2024-01-15T00:00:00Z",
            "passage_number": 3,
            "last_action_date": "2024-01-20T09:00:00Z",
            "notes": "",
            "status": "active"
        }
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Unique culture identifier")
    user_id: str | None = Field(default=None, description="Owner")
    name: str = Field(..., description="Display name")
    cell_type: str = Field(..., description="Cell type / line label")
    start_date: datetime = Field(..., description="When the culture was started")

    # Monotonically non-decreasing; only the passage counter increments it
    passage_number: int = Field(default=0, ge=0, description="Number of passages so far")

    last_action_date: datetime | None = Field(
        default=None,
        description="Most recent passage or media change"
    )
    notes: str = Field(default="", description="Free-text notes")
    status: CultureStatus = Field(default=CultureStatus.ACTIVE)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CultureCreate(BaseModel):
    """
    Input for creating a culture.

    New cultures start at passage 0 unless the caller is registering an
    already-established line.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    cell_type: str = Field(..., min_length=1, max_length=100)
    start_date: datetime
    notes: str | None = Field(default=None, max_length=1000)
    passage_number: int = Field(default=0, ge=0)


class CultureUpdate(BaseModel):
    """Partial update for a culture. Omitted fields are left unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=100)
    cell_type: str | None = Field(default=None, min_length=1, max_length=100)
    passage_number: int | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=1000)
    status: CultureStatus | None = None


class CultureSummary(BaseModel):
    """Culture fields reported back after a task completes."""

    id: str
    name: str
    passage_number: int
    last_action_date: datetime | None = None
    status: CultureStatus

    @classmethod
    def from_culture(cls, culture: Culture) -> "CultureSummary":
        return cls(
            id=culture.id,
            name=culture.name,
            passage_number=culture.passage_number,
            last_action_date=culture.last_action_date,
            status=culture.status,
        )

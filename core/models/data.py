# =============================================================================
# core/models/data.py - Export / Import Schemas
# =============================================================================
# A DataBundle is a full snapshot of one user's data: cultures, tasks and
# notification settings. The same shape is produced by export and accepted
# by import.
# =============================================================================

from datetime import datetime

from pydantic import BaseModel, Field

from .culture import Culture
from .notification import NotificationSettings
from .task import Task


class DataBundle(BaseModel):
    """Snapshot of a user's cultures, tasks and settings."""

    cultures: list[Culture] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    notification_settings: NotificationSettings | None = None
    exported_at: datetime | None = None


class ImportSummary(BaseModel):
    """Counts reported after an import."""

    cultures: int = 0
    tasks: int = 0
    notifications_scheduled: int = 0
    warnings: list[str] = Field(default_factory=list)

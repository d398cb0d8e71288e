# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - culture.py: Culture rows and create/update inputs
# - task.py: Task rows, inputs, derived state and listing filters
# - notification.py: Notification settings and scheduled alert payloads
# - auth.py: Supabase Auth sessions and credentials
# - data.py: Export/import bundle
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Culture Models
# -----------------------------------------------------------------------------
from .culture import (
    Culture,
    CultureCreate,
    CultureStatus,
    CultureSummary,
    CultureUpdate,
)

# -----------------------------------------------------------------------------
# Task Models
# -----------------------------------------------------------------------------
from .task import (
    MAX_REMINDER_HOURS,
    MIN_REMINDER_HOURS,
    CultureRef,
    Task,
    TaskCreate,
    TaskFilter,
    TaskResponse,
    TaskState,
    TaskType,
    TaskUpdate,
)

# -----------------------------------------------------------------------------
# Notification Models
# -----------------------------------------------------------------------------
from .notification import (
    NotificationKind,
    NotificationPayload,
    NotificationSettings,
    NotificationSettingsUpdate,
    ScheduledNotification,
)

# -----------------------------------------------------------------------------
# Auth Models
# -----------------------------------------------------------------------------
from .auth import (
    AuthResult,
    AuthSession,
    Credentials,
    RefreshRequest,
    SessionUser,
)

# -----------------------------------------------------------------------------
# Data Models
# -----------------------------------------------------------------------------
from .data import DataBundle, ImportSummary

__all__ = [
    # Culture
    "Culture",
    "CultureCreate",
    "CultureStatus",
    "CultureSummary",
    "CultureUpdate",
    # Task
    "MAX_REMINDER_HOURS",
    "MIN_REMINDER_HOURS",
    "CultureRef",
    "Task",
    "TaskCreate",
    "TaskFilter",
    "TaskResponse",
    "TaskState",
    "TaskType",
    "TaskUpdate",
    # Notification
    "NotificationKind",
    "NotificationPayload",
    "NotificationSettings",
    "NotificationSettingsUpdate",
    "ScheduledNotification",
    # Auth
    "AuthResult",
    "AuthSession",
    "Credentials",
    "RefreshRequest",
    "SessionUser",
    # Data
    "DataBundle",
    "ImportSummary",
]

# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .reminder_service import ReminderService, overdue_alert_time, reminder_time
from .settings_service import SettingsService
from .culture_service import CultureService
from .task_service import CompletionResult, TaskService
from .auth_service import AuthService
from .data_service import DataService

__all__ = [
    "ReminderService",
    "reminder_time",
    "overdue_alert_time",
    "SettingsService",
    "CultureService",
    "CompletionResult",
    "TaskService",
    "AuthService",
    "DataService",
]

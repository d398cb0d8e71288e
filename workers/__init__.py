# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and task definitions for
# delivering scheduled reminders and overdue alerts.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: deliver_notification
# - scheduler.py: CeleryNotificationScheduler (used by the API)
# - config.py: Worker-specific settings
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker --loglevel=info -Q notifications,default
#
#   # Or use the script
#   python scripts/start_worker.py
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]

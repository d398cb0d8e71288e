# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - cultures.py: Culture CRUD and manual passage
# - tasks.py: Task CRUD, today/overdue listings, completion
# - notifications.py: Notification settings and scheduled alerts
# - data.py: Export, import and clear
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import cultures
from . import tasks
from . import notifications
from . import data

__all__ = [
    "health",
    "cultures",
    "tasks",
    "notifications",
    "data",
]

# =============================================================================
# app/routers/notifications.py - Notification Settings Endpoints
# =============================================================================
# Endpoints:
#   GET  /api/notifications/settings    - Current settings (created on first read)
#   PUT  /api/notifications/settings    - Update; re-arms every incomplete task
#   POST /api/notifications/reschedule  - Rebuild all alerts on demand
#   GET  /api/notifications/scheduled   - The caller's pending alerts
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from app.auth import AuthUser, get_current_user
from app.dependencies import SchedulerDep, SettingsServiceDep
from app.responses import envelope
from core.models.notification import NotificationSettingsUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/settings")
async def get_settings(
    service: SettingsServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Get notification settings; defaults are stored on first access."""
    return envelope(service.get_settings(user.user_id))


@router.put("/settings")
async def update_settings(
    body: NotificationSettingsUpdate,
    service: SettingsServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Update notification settings.

    Every incomplete task's alerts are rescheduled under the new values;
    disabling notifications clears them all.
    """
    saved = service.update_settings(user.user_id, body)
    return envelope(
        saved,
        message="Notification settings updated successfully",
        warnings=service.reminders.warnings if service.reminders else None,
    )


@router.post("/reschedule")
async def reschedule(
    service: SettingsServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Cancel and re-register every alert for the caller's incomplete tasks."""
    scheduled = service.reschedule(user.user_id)
    return envelope(
        {"scheduled": scheduled},
        message="Notifications rescheduled",
        warnings=service.reminders.warnings if service.reminders else None,
    )


@router.get("/scheduled")
async def list_scheduled(
    scheduler: SchedulerDep,
    user: AuthUser = Depends(get_current_user),
):
    """Pending alerts for the caller, soonest first."""
    entries = scheduler.list_scheduled(user.user_id)
    return envelope([
        {
            "handle": entry.handle,
            "fire_at": entry.fire_at,
            **entry.payload.model_dump(mode="json"),
        }
        for entry in entries
    ])

# =============================================================================
# app/routers/data.py - Data Export / Import Endpoints
# =============================================================================
# Endpoints:
#   GET    /api/data/export   - Download everything the caller owns
#   POST   /api/data/import   - Load a previously exported bundle
#   DELETE /api/data          - Remove all cultures, tasks and alerts
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from app.auth import AuthUser, get_current_user
from app.dependencies import DataServiceDep
from app.responses import envelope
from core.models.data import DataBundle

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/export")
async def export_data(
    service: DataServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Export cultures, tasks and notification settings as one bundle."""
    return envelope(service.export_data(user.user_id))


@router.post("/import")
async def import_data(
    bundle: DataBundle,
    service: DataServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Import a bundle and reschedule every alert.

    Raises:
        400: A task references a culture that is neither in the bundle nor
            already in the caller's account (nothing is written)
    """
    summary = service.import_data(user.user_id, bundle)
    return envelope(
        summary.model_dump(exclude={"warnings"}),
        message="Data imported successfully",
        warnings=summary.warnings,
    )


@router.delete("")
async def clear_data(
    service: DataServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Delete all of the caller's data."""
    removed = service.clear_data(user.user_id)
    return envelope({"cultures_deleted": removed}, message="All data cleared")

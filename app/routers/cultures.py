# =============================================================================
# app/routers/cultures.py - Culture Endpoints
# =============================================================================
# CRUD for cultures plus a manual passage.
#
# Endpoints:
#   GET    /api/cultures                 - List cultures (optional status filter)
#   POST   /api/cultures                 - Create a culture
#   GET    /api/cultures/{id}            - Get one culture
#   PUT    /api/cultures/{id}            - Update (passage_number may not go down)
#   DELETE /api/cultures/{id}            - Delete the culture and all its tasks
#   POST   /api/cultures/{id}/passage    - Record one passage
# =============================================================================

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status

from app.auth import AuthUser, get_current_user
from app.dependencies import CultureServiceDep
from app.responses import envelope
from core.models.culture import CultureCreate, CultureStatus, CultureUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

CultureIdPath = Annotated[UUID, Path(description="Culture UUID")]


@router.get("")
async def list_cultures(
    service: CultureServiceDep,
    status_filter: Annotated[CultureStatus | None, Query(alias="status")] = None,
    user: AuthUser = Depends(get_current_user),
):
    """List the caller's cultures, newest first."""
    cultures = service.list_cultures(user.user_id, status=status_filter)
    return envelope(cultures)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_culture(
    body: CultureCreate,
    service: CultureServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Create a culture."""
    culture = service.create_culture(user.user_id, body)
    return envelope(culture, message="Culture created successfully")


@router.get("/{culture_id}")
async def get_culture(
    culture_id: CultureIdPath,
    service: CultureServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Get one culture."""
    return envelope(service.get_culture(str(culture_id), user.user_id))


@router.put("/{culture_id}")
async def update_culture(
    culture_id: CultureIdPath,
    body: CultureUpdate,
    service: CultureServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Update a culture.

    Raises:
        400: If passage_number would decrease
        404: If the culture doesn't exist
    """
    culture = service.update_culture(str(culture_id), user.user_id, body)
    return envelope(culture, message="Culture updated successfully")


@router.delete("/{culture_id}")
async def delete_culture(
    culture_id: CultureIdPath,
    service: CultureServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Delete a culture together with every task that references it."""
    removed = service.delete_culture(str(culture_id), user.user_id)
    return envelope(
        {"id": str(culture_id), "tasks_deleted": removed},
        message="Culture deleted successfully",
        warnings=service.reminders.warnings if service.reminders else None,
    )


@router.post("/{culture_id}/passage")
async def record_passage(
    culture_id: CultureIdPath,
    service: CultureServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Add one passage to the culture (atomic increment)."""
    culture = service.record_passage(str(culture_id), user.user_id)
    return envelope(culture, message=f"Culture passaged to P{culture.passage_number}")

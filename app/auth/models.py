# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime
from typing import Optional


class AuthUser(BaseModel):
    """
    Authenticated user extracted from Supabase JWT.

    This is the minimal user info available from the token itself,
    without querying the database. `token` is kept so logout can revoke it.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None
    token: Optional[str] = Field(default=None, repr=False, exclude=True)

    @property
    def user_id(self) -> str:
        """The ID as the string form used in queries."""
        return str(self.id)


class UserResponse(BaseModel):
    """User profile as returned by GET /api/auth/profile."""

    id: UUID
    email: Optional[str] = None
    created_at: Optional[datetime] = None

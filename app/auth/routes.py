# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# API endpoints for authentication-related operations.
#
# Tokens are issued by Supabase Auth; these routes proxy sign up, sign in,
# sign out and refresh, and report on the current token.
#
# Endpoints:
#   POST /api/auth/register  - Create an account
#   POST /api/auth/login     - Email/password sign in
#   POST /api/auth/logout    - Revoke the current session
#   POST /api/auth/refresh   - Trade a refresh token for a new session
#   POST /api/auth/session   - Return a cached session, refreshed if expired
#   GET  /api/auth/profile   - Current user's profile
#   GET  /api/auth/verify    - Check that the bearer token is valid
# =============================================================================

import logging

from fastapi import APIRouter, Depends, status

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser, UserResponse
from app.dependencies import AuthServiceDep
from core.models.auth import AuthSession, Credentials, RefreshRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(credentials: Credentials, auth: AuthServiceDep) -> dict:
    """
    Create an account.

    When email confirmation is enabled the session is null until the
    address is confirmed.
    """
    result = auth.sign_up(credentials)
    return {
        "success": True,
        "message": "User registered successfully",
        "data": result.model_dump(mode="json"),
    }


@router.post("/login")
async def login(credentials: Credentials, auth: AuthServiceDep) -> dict:
    """
    Sign in with email and password.

    Raises:
        401: If the credentials are rejected
    """
    result = auth.sign_in(credentials)
    return {
        "success": True,
        "message": "Login successful",
        "data": result.model_dump(mode="json"),
    }


@router.post("/logout")
async def logout(
    auth: AuthServiceDep,
    user: AuthUser = Depends(get_current_user),
) -> dict:
    """Revoke the session behind the bearer token."""
    auth.sign_out(user.token)
    logger.info(f"User {user.id} logged out")
    return {"success": True, "message": "Logout successful"}


@router.post("/refresh")
async def refresh(body: RefreshRequest, auth: AuthServiceDep) -> dict:
    """Trade a refresh token for a new session."""
    session = auth.refresh_session(body.refresh_token)
    return {
        "success": True,
        "message": "Token refreshed successfully",
        "data": {"session": session.model_dump(mode="json")},
    }


@router.post("/session")
async def ensure_session(session: AuthSession, auth: AuthServiceDep) -> dict:
    """
    Validate a cached session.

    Returned unchanged while expires_at is in the future, refreshed
    otherwise.
    """
    current = auth.ensure_valid_session(session)
    return {
        "success": True,
        "data": {
            "session": current.model_dump(mode="json"),
            "refreshed": current.access_token != session.access_token,
        },
    }


@router.get("/profile")
async def get_profile(
    auth: AuthServiceDep,
    user: AuthUser = Depends(get_current_user),
) -> dict:
    """
    Get the current authenticated user's profile from Supabase Auth.

    Raises:
        401: If not authenticated
    """
    profile = auth.current_user(user.token)
    response = UserResponse(id=profile.id, email=profile.email, created_at=profile.created_at)
    return {"success": True, "data": {"user": response.model_dump(mode="json")}}


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Verify that the current token is valid.

    Useful for checking if a stored token is still valid.

    Raises:
        401: If token is invalid or expired
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email
    }

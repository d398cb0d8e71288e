# =============================================================================
# core/models/auth.py - Auth Session Schemas
# =============================================================================
# Sessions issued by Supabase Auth. A cached session is only usable while
# `expires_at` is in the future; otherwise it must be refreshed.
# =============================================================================

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# Deliberately loose; Supabase Auth does the real address validation
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class Credentials(BaseModel):
    """Email/password pair for sign up and sign in."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(..., min_length=6, max_length=128)


class SessionUser(BaseModel):
    """The user object Supabase Auth returns alongside a session."""

    model_config = ConfigDict(extra="ignore")

    id: str
    email: str | None = None
    created_at: datetime | None = None


class AuthSession(BaseModel):
    """
    An access/refresh token pair with its expiry.

    expires_at is a Unix timestamp in seconds, as Supabase reports it.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str
    expires_at: int
    token_type: str = "bearer"
    user: SessionUser | None = None

    def is_valid(self, now: datetime) -> bool:
        """True while the session has not expired at `now`."""
        return self.expires_at > now.timestamp()


class RefreshRequest(BaseModel):
    """Body of POST /auth/refresh."""

    refresh_token: str = Field(..., min_length=1)


class AuthResult(BaseModel):
    """Result of sign up / sign in. Session is None when email confirmation is pending."""

    user: SessionUser | None = None
    session: AuthSession | None = None

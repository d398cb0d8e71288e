# =============================================================================
# core/services/auth_service.py - Supabase Auth Wrapper
# =============================================================================
# Sign up, sign in, sign out, refresh and current-user lookups against
# Supabase Auth. Tokens are issued and verified by Supabase; this module
# only translates its responses into AuthSession / SessionUser and its
# failures into AuthError (bad credentials) or UpstreamError (anything else).
# =============================================================================

import logging
from datetime import datetime
from typing import Any, Callable

from app.exceptions import AuthError, UpstreamError
from core.models.auth import AuthResult, AuthSession, Credentials, SessionUser
from lib.supabase_client import SupabaseClient
from lib.utils import ensure_aware, utc_now

logger = logging.getLogger(__name__)

# Statuses from Supabase Auth that mean "your credentials are the problem"
CREDENTIAL_STATUSES = {400, 401, 403, 422}


def _to_user(raw: Any) -> SessionUser | None:
    if raw is None:
        return None
    return SessionUser(
        id=str(raw.id),
        email=getattr(raw, "email", None),
        created_at=getattr(raw, "created_at", None),
    )


def _to_session(raw: Any, now: datetime) -> AuthSession | None:
    if raw is None:
        return None
    expires_at = getattr(raw, "expires_at", None)
    if expires_at is None:
        expires_at = int(now.timestamp()) + int(getattr(raw, "expires_in", 0) or 0)
    return AuthSession(
        access_token=raw.access_token,
        refresh_token=raw.refresh_token,
        expires_at=int(expires_at),
        token_type=getattr(raw, "token_type", None) or "bearer",
        user=_to_user(getattr(raw, "user", None)),
    )


class AuthService:
    """
    Thin wrapper over Supabase Auth.

    Each call uses a fresh anon-key client from `client_factory` so
    sessions never bleed between requests.
    """

    def __init__(
        self,
        client_factory: Callable[[], Any] = SupabaseClient.new_auth_client,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.client_factory = client_factory
        self.clock = clock

    def _translate(self, action: str, error: Exception) -> Exception:
        status = getattr(error, "status", None)
        message = getattr(error, "message", None) or str(error)
        if status in CREDENTIAL_STATUSES:
            logger.info(f"{action} rejected by Supabase Auth ({status}): {message}")
            return AuthError(message=message)
        logger.error(f"{action} failed: {error}")
        return UpstreamError(
            message=f"{action} failed: {message}",
            code="AUTH_PROVIDER_ERROR",
            suggestion="The authentication service is unavailable; try again shortly",
        )

    def sign_up(self, credentials: Credentials) -> AuthResult:
        """
        Register a new account.

        The session is None when the project requires email confirmation.
        """
        client = self.client_factory()
        try:
            response = client.auth.sign_up({
                "email": credentials.email,
                "password": credentials.password,
            })
        except Exception as e:
            raise self._translate("Sign up", e)

        logger.info(f"Registered user {credentials.email}")
        return AuthResult(
            user=_to_user(response.user),
            session=_to_session(response.session, self.clock()),
        )

    def sign_in(self, credentials: Credentials) -> AuthResult:
        """Exchange email and password for a session."""
        client = self.client_factory()
        try:
            response = client.auth.sign_in_with_password({
                "email": credentials.email,
                "password": credentials.password,
            })
        except Exception as e:
            raise self._translate("Sign in", e)

        session = _to_session(response.session, self.clock())
        if session is None:
            raise AuthError(message="Sign in did not return a session")
        return AuthResult(user=_to_user(response.user), session=session)

    def sign_out(self, access_token: str) -> None:
        """Revoke the refresh tokens behind an access token."""
        client = self.client_factory()
        try:
            client.auth.admin.sign_out(access_token)
        except Exception as e:
            raise self._translate("Sign out", e)

    def refresh_session(self, refresh_token: str) -> AuthSession:
        """Trade a refresh token for a new session."""
        client = self.client_factory()
        try:
            response = client.auth.refresh_session(refresh_token)
        except Exception as e:
            raise self._translate("Session refresh", e)

        session = _to_session(response.session, self.clock())
        if session is None:
            raise AuthError(message="Refresh token is no longer valid")
        return session

    def current_user(self, access_token: str) -> SessionUser:
        """Look up the user an access token belongs to."""
        client = self.client_factory()
        try:
            response = client.auth.get_user(access_token)
        except Exception as e:
            raise self._translate("User lookup", e)

        user = _to_user(getattr(response, "user", None)) if response else None
        if user is None:
            raise AuthError(message="Invalid or expired token")
        return user

    def ensure_valid_session(self, session: AuthSession) -> AuthSession:
        """
        Return `session` if it has not expired, otherwise a refreshed one.

        A session is usable only while expires_at is strictly in the future.
        """
        if session.is_valid(ensure_aware(self.clock())):
            return session
        logger.debug("Cached session expired, refreshing")
        return self.refresh_session(session.refresh_token)

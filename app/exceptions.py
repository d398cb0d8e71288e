# =============================================================================
# app/exceptions.py - Error Taxonomy and Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error tells the caller HOW to fix it, not just WHAT failed.
#
# Four kinds of failure reach clients:
#   ValidationError  400  malformed input, rejected before any persistence call
#   NotFoundError    404  culture/task missing or owned by someone else
#   UpstreamError    500  Supabase or the auth provider failed (retryable)
#   AuthError        401  missing, invalid or expired credential
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class CellendarException(Exception):
    """
    Base exception for the Cellendar API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "CELLENDAR_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "success": False,
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Validation
# =============================================================================

class ValidationError(CellendarException):
    """Raised when input is malformed or violates a domain rule."""

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            suggestion=suggestion,
            details=details,
        )


# =============================================================================
# Not Found
# =============================================================================

class NotFoundError(CellendarException):
    """Raised when a referenced row does not exist or belongs to another user."""

    def __init__(
        self,
        message: str,
        code: str = "NOT_FOUND",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=404,
            suggestion=suggestion,
            details=details,
        )


class CultureNotFoundError(NotFoundError):
    """Raised when a culture ID doesn't exist for the caller."""

    def __init__(self, culture_id: str):
        super().__init__(
            message=f"Culture not found: {culture_id}",
            code="CULTURE_NOT_FOUND",
            suggestion="Check that the culture_id is correct and the culture hasn't been deleted",
            details={"culture_id": culture_id},
        )


class TaskNotFoundError(NotFoundError):
    """Raised when a task ID doesn't exist for the caller."""

    def __init__(self, task_id: str):
        super().__init__(
            message=f"Task not found: {task_id}",
            code="TASK_NOT_FOUND",
            suggestion="Check that the task_id is correct; tasks are removed with their culture",
            details={"task_id": task_id},
        )


# =============================================================================
# Upstream
# =============================================================================

class UpstreamError(CellendarException):
    """
    Raised when Supabase (database or auth) fails.

    Always retryable from the client's point of view.
    """

    def __init__(
        self,
        message: str,
        code: str = "UPSTREAM_ERROR",
        suggestion: str | None = "Try again in a moment; the storage service did not respond as expected",
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        details.setdefault("retryable", True)
        super().__init__(
            message=message,
            code=code,
            status_code=500,
            suggestion=suggestion,
            details=details,
        )


class PartialCompletionError(UpstreamError):
    """
    Raised when a passaging task was marked complete but the culture's
    passage increment could not be written.

    The task stays completed; retrying POST /cultures/{id}/passage applies
    the missing increment.
    """

    def __init__(self, task_id: str, culture_id: str, error: str):
        super().__init__(
            message=f"Task {task_id} was completed but the passage number of culture {culture_id} was not updated: {error}",
            code="PASSAGE_UPDATE_FAILED",
            suggestion=f"Retry POST /api/cultures/{culture_id}/passage to record the passage",
            details={"task_id": task_id, "culture_id": culture_id, "task_completed": True},
        )


# =============================================================================
# Auth
# =============================================================================

class AuthError(CellendarException):
    """Raised when a credential is missing, invalid or expired."""

    def __init__(
        self,
        message: str = "Authentication required",
        suggestion: str | None = "Sign in again or refresh your session",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code="AUTH_ERROR",
            status_code=401,
            suggestion=suggestion,
            details=details,
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def cellendar_exception_handler(
    request: Request,
    exc: CellendarException
) -> JSONResponse:
    """
    Convert CellendarException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors raised by pydantic models.

    Rendered as 400 so clients see one status for every kind of bad input.
    """
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "detail": "Validation failed",
            "code": "VALIDATION_ERROR",
            "errors": errors,
        }
    )

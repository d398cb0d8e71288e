# =============================================================================
# app/responses.py - Success Envelope
# =============================================================================
# Every successful response has the same shape:
#   {"success": true, "data": ..., "message"?: str, "warnings"?: [str]}
# Warnings carry non-fatal notification problems.
# =============================================================================

from typing import Any

from pydantic import BaseModel


def _jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, list):
        return [_jsonable(item) for item in data]
    if isinstance(data, dict):
        return {key: _jsonable(value) for key, value in data.items()}
    return data


def envelope(
    data: Any = None,
    message: str | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    """Wrap a result in the success envelope."""
    body: dict[str, Any] = {"success": True, "data": _jsonable(data)}
    if message:
        body["message"] = message
    if warnings:
        body["warnings"] = list(warnings)
    return body

# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

from datetime import datetime, timezone
from uuid import UUID

from pydantic import TypeAdapter

_DATETIME = TypeAdapter(datetime)


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Handles both string and UUID objects, ensuring consistent string output.

    Example:
        culture_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        culture_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


# =============================================================================
# Time Utilities
# =============================================================================

def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """
    Treat naive datetimes as UTC.

    Supabase returns timestamptz columns with an offset, but clients
    occasionally post naive ISO strings.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """
    Parse an ISO-8601 timestamp coming back from PostgREST.

    Goes through pydantic, which accepts the trailing "Z" and the trimmed
    fractional seconds (e.g. ".12345") Postgres emits.
    """
    if value is None or value == "":
        return None
    return ensure_aware(_DATETIME.validate_python(value))


def to_iso(value: datetime | None) -> str | None:
    """Serialize a datetime for a Supabase write."""
    if value is None:
        return None
    return ensure_aware(value).isoformat()

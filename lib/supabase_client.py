# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides the persistence operations the services need:
# - Cultures (with task cascade on delete and atomic passage increment)
# - Tasks (filtered by culture, completion flag and scheduled window)
# - Notification settings (one row per user)
# - The scheduled_notifications registry used by the Celery scheduler
#
# The service_role key bypasses Row Level Security, so EVERY query here is
# filtered by user_id explicitly.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   culture = SupabaseClient.fetch_culture(culture_id, user_id)
# =============================================================================

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from supabase import Client, ClientOptions, create_client

from app.config import settings
from app.exceptions import CultureNotFoundError, PartialCompletionError, UpstreamError
from lib.utils import normalize_uuid, to_iso

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST: ".single()" matched no rows
NO_ROWS_CODE = "PGRST116"
# PostgREST: function not found in schema cache
MISSING_FUNCTION_CODE = "PGRST202"
# Postgres no_data_found, raised by complete_task() for a missing culture
NO_DATA_FOUND_CODE = "P0002"

# Column list for task reads; embeds the owning culture
TASK_SELECT = "*, cultures(id, name, status)"

# Attempts for the compare-and-set passage increment before giving up
PASSAGE_CAS_ATTEMPTS = 5


class SupabaseClientError(UpstreamError):
    """
    Error during Supabase operations.

    Subclasses UpstreamError so an unhandled failure reaches the client
    as a retryable 500 with a suggestion.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            suggestion=suggestion or "Try again in a moment; the database did not respond as expected",
            details=details,
        )

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


def _error_code(error: Exception) -> str | None:
    """Extract the PostgREST error code from an APIError (or its message)."""
    code = getattr(error, "code", None)
    if code:
        return str(code)
    for known in (NO_ROWS_CODE, MISSING_FUNCTION_CODE):
        if known in str(error):
            return known
    return None


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation, which also lets the class itself be passed around as
    the persistence collaborator.

    Example:
        cultures = SupabaseClient.list_cultures(user_id)
        culture = SupabaseClient.increment_passage_number(culture_id, user_id, now)
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def new_auth_client(cls) -> Client:
        """
        Create a short-lived anon-key client for Supabase Auth calls.

        A fresh client per call keeps one user's session from leaking into
        another request; nothing is persisted or auto-refreshed.
        """
        try:
            return create_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_ANON_KEY,
                options=ClientOptions(persist_session=False, auto_refresh_token=False),
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to create Supabase auth client: {e}",
                code="AUTH_CLIENT_INIT_FAILED",
                suggestion="Check SUPABASE_URL and SUPABASE_ANON_KEY in your .env file"
            )

    @classmethod
    def _normalize_uuid(cls, uuid_value: str | UUID) -> str:
        """Convert UUID to string for queries."""
        return normalize_uuid(uuid_value)

    # -------------------------------------------------------------------------
    # Cultures
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_culture(cls, culture_id: str | UUID, user_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch one culture owned by user_id.

        Returns:
            Culture dict, or None if not found / not owned

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()
        culture_id_str = cls._normalize_uuid(culture_id)

        try:
            response = (
                client.table("cultures")
                .select("*")
                .eq("id", culture_id_str)
                .eq("user_id", cls._normalize_uuid(user_id))
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if _error_code(e) == NO_ROWS_CODE:
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch culture: {e}",
                code="FETCH_CULTURE_FAILED",
                details={"culture_id": culture_id_str}
            )

    @classmethod
    def list_cultures(
        cls,
        user_id: str | UUID,
        status: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        List a user's cultures, newest first.

        Args:
            user_id: Owner
            status: Optional status filter (active, paused, terminated)
        """
        client = cls.get_client()
        query = (
            client.table("cultures")
            .select("*")
            .eq("user_id", cls._normalize_uuid(user_id))
        )
        if status:
            query = query.eq("status", status)

        try:
            response = query.order("created_at", desc=True).execute()
            cultures = response.data or []
            logger.debug(f"Fetched {len(cultures)} cultures for user {user_id}")
            return cultures

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to list cultures: {e}",
                code="LIST_CULTURES_FAILED",
                details={"user_id": str(user_id)}
            )

    @classmethod
    def insert_culture(cls, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a culture row. `data` must include id and user_id.

        Raises:
            SupabaseClientError: If insert fails or returns nothing
        """
        client = cls.get_client()

        try:
            response = client.table("cultures").insert(data).execute()
            if response.data:
                return response.data[0]
            raise SupabaseClientError(
                message="Insert returned no data",
                code="INSERT_NO_DATA"
            )

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert culture: {e}",
                code="INSERT_CULTURE_FAILED",
                details={"name": data.get("name")}
            )

    @classmethod
    def update_culture(
        cls,
        culture_id: str | UUID,
        user_id: str | UUID,
        data: dict[str, Any],
    ) -> dict[str, Any] | None:
        """
        Update a culture owned by user_id.

        Returns:
            Updated culture dict, or None if no row matched
        """
        client = cls.get_client()
        culture_id_str = cls._normalize_uuid(culture_id)

        try:
            response = (
                client.table("cultures")
                .update(data)
                .eq("id", culture_id_str)
                .eq("user_id", cls._normalize_uuid(user_id))
                .execute()
            )
            return response.data[0] if response.data else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update culture: {e}",
                code="UPDATE_CULTURE_FAILED",
                details={"culture_id": culture_id_str}
            )

    @classmethod
    def upsert_cultures(cls, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert or replace culture rows by id (used by data import)."""
        if not rows:
            return []
        client = cls.get_client()

        try:
            response = client.table("cultures").upsert(rows, on_conflict="id").execute()
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to upsert cultures: {e}",
                code="UPSERT_CULTURES_FAILED",
                details={"count": len(rows)}
            )

    @classmethod
    def delete_culture(cls, culture_id: str | UUID, user_id: str | UUID) -> bool:
        """
        Delete a culture and every task that references it.

        Tasks go first so no orphan is ever queryable, even where the
        database lacks ON DELETE CASCADE.

        Returns:
            True if the culture existed and was deleted
        """
        client = cls.get_client()
        culture_id_str = cls._normalize_uuid(culture_id)
        user_id_str = cls._normalize_uuid(user_id)

        try:
            client.table("tasks").delete().eq("culture_id", culture_id_str).eq("user_id", user_id_str).execute()
            response = (
                client.table("cultures")
                .delete()
                .eq("id", culture_id_str)
                .eq("user_id", user_id_str)
                .execute()
            )
            deleted = bool(response.data)
            if deleted:
                logger.info(f"Deleted culture {culture_id_str} and its tasks")
            return deleted

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to delete culture: {e}",
                code="DELETE_CULTURE_FAILED",
                details={"culture_id": culture_id_str}
            )

    @classmethod
    def delete_all_cultures(cls, user_id: str | UUID) -> int:
        """Delete every task and culture owned by user_id. Returns cultures removed."""
        client = cls.get_client()
        user_id_str = cls._normalize_uuid(user_id)

        try:
            client.table("tasks").delete().eq("user_id", user_id_str).execute()
            response = client.table("cultures").delete().eq("user_id", user_id_str).execute()
            return len(response.data or [])

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to clear data: {e}",
                code="CLEAR_DATA_FAILED",
                details={"user_id": user_id_str}
            )

    @classmethod
    def increment_passage_number(
        cls,
        culture_id: str | UUID,
        user_id: str | UUID,
        action_date: datetime,
    ) -> dict[str, Any] | None:
        """
        Atomically add one to a culture's passage_number and stamp
        last_action_date.

        Uses the `increment_passage_number` Postgres function when it is
        deployed (see supabase/schema.sql). Otherwise falls back to a
        compare-and-set update keyed on the previously read value, retried
        on conflict, so concurrent completions never lose an increment.

        Returns:
            Updated culture dict, or None if the culture doesn't exist

        Raises:
            SupabaseClientError: If the write fails or keeps conflicting
        """
        client = cls.get_client()
        culture_id_str = cls._normalize_uuid(culture_id)
        user_id_str = cls._normalize_uuid(user_id)

        try:
            response = client.rpc(
                "increment_passage_number",
                {
                    "p_culture_id": culture_id_str,
                    "p_user_id": user_id_str,
                    "p_action_date": to_iso(action_date),
                },
            ).execute()
            rows = response.data
            if isinstance(rows, list):
                return rows[0] if rows else None
            return rows or None

        except Exception as e:
            if _error_code(e) != MISSING_FUNCTION_CODE:
                raise SupabaseClientError(
                    message=f"Failed to increment passage number: {e}",
                    code="INCREMENT_PASSAGE_FAILED",
                    details={"culture_id": culture_id_str}
                )
            logger.warning("increment_passage_number RPC missing, using compare-and-set fallback")

        return cls._compare_and_set_passage(culture_id_str, user_id_str, action_date)

    @classmethod
    def _compare_and_set_passage(
        cls,
        culture_id: str,
        user_id: str,
        action_date: datetime,
    ) -> dict[str, Any] | None:
        """Increment passage_number only if it still holds the value we read."""
        client = cls.get_client()

        for attempt in range(1, PASSAGE_CAS_ATTEMPTS + 1):
            current = cls.fetch_culture(culture_id, user_id)
            if current is None:
                return None
            previous = current.get("passage_number") or 0

            try:
                response = (
                    client.table("cultures")
                    .update({
                        "passage_number": previous + 1,
                        "last_action_date": to_iso(action_date),
                    })
                    .eq("id", culture_id)
                    .eq("user_id", user_id)
                    .eq("passage_number", previous)
                    .execute()
                )
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to increment passage number: {e}",
                    code="INCREMENT_PASSAGE_FAILED",
                    details={"culture_id": culture_id}
                )

            if response.data:
                return response.data[0]
            logger.debug(f"Passage increment conflict on culture {culture_id} (attempt {attempt})")

        raise SupabaseClientError(
            message=f"Passage number of culture {culture_id} kept changing underneath the update",
            code="PASSAGE_CONFLICT",
            suggestion="Retry the request",
            details={"culture_id": culture_id, "attempts": PASSAGE_CAS_ATTEMPTS}
        )

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_task(cls, task_id: str | UUID, user_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch one task (with its culture embedded) owned by user_id.

        Returns:
            Task dict, or None if not found / not owned
        """
        client = cls.get_client()
        task_id_str = cls._normalize_uuid(task_id)

        try:
            response = (
                client.table("tasks")
                .select(TASK_SELECT)
                .eq("id", task_id_str)
                .eq("user_id", cls._normalize_uuid(user_id))
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if _error_code(e) == NO_ROWS_CODE:
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch task: {e}",
                code="FETCH_TASK_FAILED",
                details={"task_id": task_id_str}
            )

    @classmethod
    def list_tasks(
        cls,
        user_id: str | UUID,
        culture_id: str | UUID | None = None,
        completed: bool | None = None,
        scheduled_from: datetime | None = None,
        scheduled_to: datetime | None = None,
        scheduled_before: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """
        List a user's tasks ordered by scheduled_date ascending.

        Args:
            user_id: Owner
            culture_id: Only tasks for this culture
            completed: Only completed (True) or incomplete (False) tasks
            scheduled_from / scheduled_to: Inclusive scheduled window
            scheduled_before: Strictly earlier than this instant
        """
        client = cls.get_client()
        query = (
            client.table("tasks")
            .select(TASK_SELECT)
            .eq("user_id", cls._normalize_uuid(user_id))
        )
        if culture_id:
            query = query.eq("culture_id", cls._normalize_uuid(culture_id))
        if completed is not None:
            query = query.eq("is_completed", completed)
        if scheduled_from is not None:
            query = query.gte("scheduled_date", to_iso(scheduled_from))
        if scheduled_to is not None:
            query = query.lte("scheduled_date", to_iso(scheduled_to))
        if scheduled_before is not None:
            query = query.lt("scheduled_date", to_iso(scheduled_before))

        try:
            response = query.order("scheduled_date", desc=False).execute()
            tasks = response.data or []
            logger.debug(f"Fetched {len(tasks)} tasks for user {user_id}")
            return tasks

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to list tasks: {e}",
                code="LIST_TASKS_FAILED",
                details={"user_id": str(user_id)}
            )

    @classmethod
    def insert_task(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a task row and return it with its culture embedded."""
        client = cls.get_client()

        try:
            response = client.table("tasks").insert(data).execute()
            if not response.data:
                raise SupabaseClientError(
                    message="Insert returned no data",
                    code="INSERT_NO_DATA"
                )
            row = response.data[0]

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert task: {e}",
                code="INSERT_TASK_FAILED",
                details={"culture_id": data.get("culture_id")}
            )

        return cls.fetch_task(row["id"], row["user_id"]) or row

    @classmethod
    def update_task(
        cls,
        task_id: str | UUID,
        user_id: str | UUID,
        data: dict[str, Any],
    ) -> dict[str, Any] | None:
        """
        Update a task owned by user_id.

        Returns:
            Updated task dict with its culture embedded, or None if no row matched
        """
        client = cls.get_client()
        task_id_str = cls._normalize_uuid(task_id)

        try:
            response = (
                client.table("tasks")
                .update(data)
                .eq("id", task_id_str)
                .eq("user_id", cls._normalize_uuid(user_id))
                .execute()
            )

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update task: {e}",
                code="UPDATE_TASK_FAILED",
                details={"task_id": task_id_str}
            )

        if not response.data:
            return None
        return cls.fetch_task(task_id_str, user_id) or response.data[0]

    @classmethod
    def claim_task_completion(
        cls,
        task_id: str | UUID,
        user_id: str | UUID,
        completed_at: datetime,
    ) -> dict[str, Any] | None:
        """
        Mark a task completed only if it is not completed yet.

        The `is_completed = false` filter makes this a conditional write:
        of two racing completions exactly one gets a row back.

        Returns:
            The updated task dict, or None if it was already completed
            (or doesn't exist)
        """
        client = cls.get_client()
        task_id_str = cls._normalize_uuid(task_id)

        try:
            response = (
                client.table("tasks")
                .update({
                    "is_completed": True,
                    "completed_date": to_iso(completed_at),
                })
                .eq("id", task_id_str)
                .eq("user_id", cls._normalize_uuid(user_id))
                .eq("is_completed", False)
                .execute()
            )

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to complete task: {e}",
                code="COMPLETE_TASK_FAILED",
                details={"task_id": task_id_str}
            )

        if not response.data:
            return None
        logger.info(f"Completed task {task_id_str}")
        return cls.fetch_task(task_id_str, user_id) or response.data[0]

    @classmethod
    def complete_task(
        cls,
        task_id: str | UUID,
        user_id: str | UUID,
        completed_at: datetime,
    ) -> dict[str, Any] | None:
        """
        Complete a task and, for passaging tasks, add one to its culture's
        passage_number in the same transaction.

        Uses the `complete_task` Postgres function (see supabase/schema.sql).
        Where it is not deployed, falls back to claim_task_completion()
        followed by increment_passage_number(); that path is two writes and
        reports a failed second write as PartialCompletionError.

        Returns:
            {"task": task dict, "culture": culture dict or None}, or None if
            the task was already completed (or doesn't exist)

        Raises:
            CultureNotFoundError: If a passaging task's culture is gone
                (nothing is written)
            PartialCompletionError: Fallback path only, when the task was
                completed but the increment failed
            SupabaseClientError: If the database call fails
        """
        client = cls.get_client()
        task_id_str = cls._normalize_uuid(task_id)
        user_id_str = cls._normalize_uuid(user_id)

        try:
            response = client.rpc(
                "complete_task",
                {
                    "p_task_id": task_id_str,
                    "p_user_id": user_id_str,
                    "p_now": to_iso(completed_at),
                },
            ).execute()

        except Exception as e:
            code = _error_code(e)
            if code == NO_DATA_FOUND_CODE:
                raise CultureNotFoundError(str(getattr(e, "details", None) or ""))
            if code != MISSING_FUNCTION_CODE:
                raise SupabaseClientError(
                    message=f"Failed to complete task: {e}",
                    code="COMPLETE_TASK_FAILED",
                    details={"task_id": task_id_str}
                )
            logger.warning("complete_task RPC missing, completing in two steps")
            return cls._complete_task_in_steps(task_id_str, user_id_str, completed_at)

        outcome = response.data
        if isinstance(outcome, list):
            outcome = outcome[0] if outcome else None
        if not outcome:
            return None

        logger.info(f"Completed task {task_id_str}")
        return {
            "task": cls.fetch_task(task_id_str, user_id_str) or outcome["task"],
            "culture": outcome.get("culture"),
        }

    @classmethod
    def _complete_task_in_steps(
        cls,
        task_id: str,
        user_id: str,
        completed_at: datetime,
    ) -> dict[str, Any] | None:
        """Claim the task, then increment its culture if it is a passaging task."""
        task = cls.claim_task_completion(task_id, user_id, completed_at)
        if task is None:
            return None

        culture_id = str(task["culture_id"])
        if task.get("type") != "passaging":
            return {"task": task, "culture": cls.fetch_culture(culture_id, user_id)}

        try:
            culture = cls.increment_passage_number(culture_id, user_id, completed_at)
        except SupabaseClientError as e:
            logger.error(f"Task {task_id} completed but passage increment failed: {e}")
            raise PartialCompletionError(task_id, culture_id, e.message)
        if culture is None:
            raise PartialCompletionError(task_id, culture_id, "culture no longer exists")
        return {"task": task, "culture": culture}

    @classmethod
    def upsert_tasks(cls, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert or replace task rows by id (used by data import)."""
        if not rows:
            return []
        client = cls.get_client()

        try:
            response = client.table("tasks").upsert(rows, on_conflict="id").execute()
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to upsert tasks: {e}",
                code="UPSERT_TASKS_FAILED",
                details={"count": len(rows)}
            )

    @classmethod
    def delete_task(cls, task_id: str | UUID, user_id: str | UUID) -> bool:
        """Delete a task. Returns True if a row was removed."""
        client = cls.get_client()
        task_id_str = cls._normalize_uuid(task_id)

        try:
            response = (
                client.table("tasks")
                .delete()
                .eq("id", task_id_str)
                .eq("user_id", cls._normalize_uuid(user_id))
                .execute()
            )
            return bool(response.data)

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to delete task: {e}",
                code="DELETE_TASK_FAILED",
                details={"task_id": task_id_str}
            )

    # -------------------------------------------------------------------------
    # Notification Settings
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_notification_settings(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """Fetch the user's notification settings row, or None if absent."""
        client = cls.get_client()
        user_id_str = cls._normalize_uuid(user_id)

        try:
            response = (
                client.table("notification_settings")
                .select("*")
                .eq("user_id", user_id_str)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if _error_code(e) == NO_ROWS_CODE:
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch notification settings: {e}",
                code="FETCH_SETTINGS_FAILED",
                details={"user_id": user_id_str}
            )

    @classmethod
    def upsert_notification_settings(
        cls,
        user_id: str | UUID,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        """Create or update the user's notification settings row."""
        client = cls.get_client()
        user_id_str = cls._normalize_uuid(user_id)
        row = {**data, "user_id": user_id_str}

        try:
            response = (
                client.table("notification_settings")
                .upsert(row, on_conflict="user_id")
                .execute()
            )
            if response.data:
                return response.data[0]
            raise SupabaseClientError(
                message="Upsert returned no data",
                code="UPSERT_NO_DATA"
            )

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to save notification settings: {e}",
                code="SAVE_SETTINGS_FAILED",
                details={"user_id": user_id_str}
            )

    # -------------------------------------------------------------------------
    # Scheduled Notifications Registry
    # -------------------------------------------------------------------------

    @classmethod
    def insert_scheduled_notification(cls, row: dict[str, Any]) -> dict[str, Any]:
        """Record a pending alert. `row` carries id (the handle) and fire_at."""
        client = cls.get_client()

        try:
            response = client.table("scheduled_notifications").insert(row).execute()
            return response.data[0] if response.data else row

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to record scheduled notification: {e}",
                code="INSERT_NOTIFICATION_FAILED",
                details={"task_id": row.get("task_id")}
            )

    @classmethod
    def fetch_scheduled_notification(cls, handle: str) -> dict[str, Any] | None:
        """Fetch a pending alert by handle, or None if it was cancelled."""
        client = cls.get_client()

        try:
            response = (
                client.table("scheduled_notifications")
                .select("*")
                .eq("id", handle)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if _error_code(e) == NO_ROWS_CODE:
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch scheduled notification: {e}",
                code="FETCH_NOTIFICATION_FAILED",
                details={"handle": handle}
            )

    @classmethod
    def list_scheduled_notifications(cls, user_id: str | UUID | None = None) -> list[dict[str, Any]]:
        """List pending alerts, optionally for one user, soonest first."""
        client = cls.get_client()
        query = client.table("scheduled_notifications").select("*")
        if user_id is not None:
            query = query.eq("user_id", cls._normalize_uuid(user_id))

        try:
            response = query.order("fire_at", desc=False).execute()
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to list scheduled notifications: {e}",
                code="LIST_NOTIFICATIONS_FAILED",
            )

    @classmethod
    def delete_scheduled_notification(cls, handle: str) -> bool:
        """Remove a pending alert. Returns True if it was still pending."""
        client = cls.get_client()

        try:
            response = client.table("scheduled_notifications").delete().eq("id", handle).execute()
            return bool(response.data)

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to delete scheduled notification: {e}",
                code="DELETE_NOTIFICATION_FAILED",
                details={"handle": handle}
            )

# =============================================================================
# core/services/culture_service.py - Culture Business Logic
# =============================================================================
# Handles culture CRUD operations and business logic.
# Separates HTTP concerns from database/business logic.
#
# Two rules live here:
# - passage_number never goes down (edits may raise it, never lower it)
# - deleting a culture deletes its tasks and cancels their alerts
# =============================================================================

import logging
from datetime import datetime
from typing import Any, Callable
from uuid import uuid4

from app.exceptions import CultureNotFoundError, ValidationError
from core.models.culture import Culture, CultureCreate, CultureStatus, CultureUpdate
from core.services.reminder_service import ReminderService
from lib.supabase_client import SupabaseClient
from lib.utils import to_iso, utc_now

logger = logging.getLogger(__name__)


class CultureService:
    """
    Service for culture management operations.

    Provides a clean interface between API routes and database.
    """

    def __init__(
        self,
        store: Any = SupabaseClient,
        reminders: ReminderService | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.reminders = reminders
        self.clock = clock

    def list_cultures(self, user_id: str, status: CultureStatus | None = None) -> list[Culture]:
        """List the user's cultures, newest first."""
        rows = self.store.list_cultures(user_id, status=status.value if status else None)
        return [Culture.model_validate(row) for row in rows]

    def get_culture(self, culture_id: str, user_id: str) -> Culture:
        """
        Get a culture by ID.

        Raises:
            CultureNotFoundError: If it doesn't exist or belongs to someone else
        """
        row = self.store.fetch_culture(culture_id, user_id)
        if row is None:
            raise CultureNotFoundError(str(culture_id))
        return Culture.model_validate(row)

    def create_culture(self, user_id: str, data: CultureCreate) -> Culture:
        """Create a culture. last_action_date starts at creation time."""
        now = self.clock()
        row = self.store.insert_culture({
            "id": str(uuid4()),
            "user_id": user_id,
            "name": data.name,
            "cell_type": data.cell_type,
            "start_date": to_iso(data.start_date),
            "passage_number": data.passage_number,
            "last_action_date": to_iso(now),
            "notes": data.notes or "",
            "status": CultureStatus.ACTIVE.value,
        })
        culture = Culture.model_validate(row)
        logger.info(f"Created culture {culture.id} ({culture.name}) for user {user_id}")
        return culture

    def update_culture(self, culture_id: str, user_id: str, data: CultureUpdate) -> Culture:
        """
        Apply a partial update.

        Raises:
            CultureNotFoundError: If the culture doesn't exist
            ValidationError: If the update would lower passage_number
        """
        current = self.get_culture(culture_id, user_id)
        changes = data.model_dump(exclude_none=True, mode="json")
        if not changes:
            return current

        new_passage = changes.get("passage_number")
        if new_passage is not None and new_passage < current.passage_number:
            raise ValidationError(
                message=f"passage_number cannot decrease (currently {current.passage_number}, got {new_passage})",
                suggestion="Passage numbers only go up; record a passage instead of editing it down",
                details={"culture_id": current.id, "passage_number": current.passage_number},
            )

        row = self.store.update_culture(culture_id, user_id, changes)
        if row is None:
            raise CultureNotFoundError(str(culture_id))
        return Culture.model_validate(row)

    def record_passage(self, culture_id: str, user_id: str) -> Culture:
        """
        Add one passage to a culture outside the task flow.

        Also the retry path after a passaging completion whose increment
        failed.
        """
        row = self.store.increment_passage_number(culture_id, user_id, self.clock())
        if row is None:
            raise CultureNotFoundError(str(culture_id))
        culture = Culture.model_validate(row)
        logger.info(f"Culture {culture.id} passaged to P{culture.passage_number}")
        return culture

    def delete_culture(self, culture_id: str, user_id: str) -> int:
        """
        Delete a culture together with all of its tasks.

        Returns:
            Number of tasks removed with it
        """
        self.get_culture(culture_id, user_id)

        tasks = self.store.list_tasks(user_id, culture_id=culture_id)
        if self.reminders is not None:
            for task in tasks:
                self.reminders.cancel_for_task(task["id"], owner=user_id)

        if not self.store.delete_culture(culture_id, user_id):
            raise CultureNotFoundError(str(culture_id))

        logger.info(f"Deleted culture {culture_id} with {len(tasks)} tasks")
        return len(tasks)

# =============================================================================
# core/scheduling.py - Notification Scheduler Capability
# =============================================================================
# The reminder logic only needs four things from whatever actually delivers
# alerts:
#
#   schedule_once(fire_at, payload) -> handle
#   cancel(handle)
#   list_scheduled(owner=None) -> [ScheduledNotification]
#   cancel_all(owner=None)
#
# Two implementations exist:
# - InMemoryNotificationScheduler (here): process-local, used in development
#   and tests; due alerts are drained by a dispatch loop in the API process
# - CeleryNotificationScheduler (workers/scheduler.py): durable, delivered by
#   a Celery worker at the requested ETA
# =============================================================================

import logging
import threading
from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import uuid4

from core.models.notification import NotificationPayload, ScheduledNotification
from lib.utils import ensure_aware

logger = logging.getLogger(__name__)


class SchedulerUnavailableError(Exception):
    """Raised by a scheduler backend that cannot accept work right now."""


@runtime_checkable
class NotificationScheduler(Protocol):
    """Fire-once alert scheduling. Handles are opaque strings."""

    def schedule_once(self, fire_at: datetime, payload: NotificationPayload) -> str:
        ...

    def cancel(self, handle: str) -> None:
        ...

    def list_scheduled(self, owner: str | None = None) -> list[ScheduledNotification]:
        ...

    def cancel_all(self, owner: str | None = None) -> int:
        ...


class InMemoryNotificationScheduler:
    """
    Thread-safe, process-local scheduler.

    Alerts live in a dict keyed by handle until they are cancelled or
    drained by pop_due(). Nothing survives a restart.

    Example:
        scheduler = InMemoryNotificationScheduler()
        handle = scheduler.schedule_once(fire_at, payload)
        scheduler.cancel(handle)
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: dict[str, ScheduledNotification] = {}

    def schedule_once(self, fire_at: datetime, payload: NotificationPayload) -> str:
        handle = str(uuid4())
        entry = ScheduledNotification(
            handle=handle,
            payload=payload,
            fire_at=ensure_aware(fire_at),
        )
        with self._lock:
            self._pending[handle] = entry
        logger.debug(f"Scheduled {payload.kind.value} for task {payload.task_id} at {entry.fire_at.isoformat()}")
        return handle

    def cancel(self, handle: str) -> None:
        # Unknown handles are ignored; cancelling twice is fine
        with self._lock:
            self._pending.pop(handle, None)

    def list_scheduled(self, owner: str | None = None) -> list[ScheduledNotification]:
        with self._lock:
            entries = list(self._pending.values())
        if owner is not None:
            entries = [entry for entry in entries if entry.payload.user_id == owner]
        return sorted(entries, key=lambda entry: entry.fire_at)

    def cancel_all(self, owner: str | None = None) -> int:
        with self._lock:
            if owner is None:
                count = len(self._pending)
                self._pending.clear()
                return count
            doomed = [
                handle for handle, entry in self._pending.items()
                if entry.payload.user_id == owner
            ]
            for handle in doomed:
                del self._pending[handle]
        return len(doomed)

    def pop_due(self, now: datetime) -> list[ScheduledNotification]:
        """Remove and return every alert whose fire time is at or before `now`."""
        now = ensure_aware(now)
        with self._lock:
            due = [entry for entry in self._pending.values() if entry.fire_at <= now]
            for entry in due:
                del self._pending[entry.handle]
        return sorted(due, key=lambda entry: entry.fire_at)

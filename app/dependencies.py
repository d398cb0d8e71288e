# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
#
# Services are built per request around three shared collaborators:
# - the store (SupabaseClient)
# - the notification scheduler (one per process, chosen by
#   NOTIFICATION_BACKEND)
# - the clock
#
# Tests replace any of these with app.dependency_overrides.
# =============================================================================

from datetime import datetime
from functools import lru_cache
from typing import Annotated, Any, Callable

from fastapi import Depends

from app.config import settings
from core.scheduling import InMemoryNotificationScheduler, NotificationScheduler
from core.services import (
    AuthService,
    CultureService,
    DataService,
    ReminderService,
    SettingsService,
    TaskService,
)
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now


def get_store() -> Any:
    """
    Get the persistence collaborator.

    Returns the singleton client wrapper class.
    """
    return SupabaseClient


@lru_cache
def get_notification_scheduler() -> NotificationScheduler:
    """The process-wide scheduler for the configured backend."""
    if settings.NOTIFICATION_BACKEND == "memory":
        return InMemoryNotificationScheduler()

    from workers.scheduler import CeleryNotificationScheduler
    return CeleryNotificationScheduler()


def get_clock() -> Callable[[], datetime]:
    """Wall clock used for every 'now' decision in a request."""
    return utc_now


# Type aliases for dependency injection
StoreDep = Annotated[Any, Depends(get_store)]
SchedulerDep = Annotated[NotificationScheduler, Depends(get_notification_scheduler)]
ClockDep = Annotated[Callable[[], datetime], Depends(get_clock)]


# =============================================================================
# Service factories
# =============================================================================

def get_reminder_service(scheduler: SchedulerDep, clock: ClockDep) -> ReminderService:
    return ReminderService(scheduler, clock=clock)


ReminderDep = Annotated[ReminderService, Depends(get_reminder_service)]


def get_settings_service(store: StoreDep, reminders: ReminderDep) -> SettingsService:
    return SettingsService(store, reminders)


SettingsServiceDep = Annotated[SettingsService, Depends(get_settings_service)]


def get_task_service(
    store: StoreDep,
    reminders: ReminderDep,
    settings_service: SettingsServiceDep,
    clock: ClockDep,
) -> TaskService:
    return TaskService(store, reminders, settings_service, clock=clock)


def get_culture_service(store: StoreDep, reminders: ReminderDep, clock: ClockDep) -> CultureService:
    return CultureService(store, reminders, clock=clock)


def get_data_service(
    store: StoreDep,
    reminders: ReminderDep,
    settings_service: SettingsServiceDep,
    clock: ClockDep,
) -> DataService:
    return DataService(store, reminders, settings_service, clock=clock)


def get_auth_service(clock: ClockDep) -> AuthService:
    return AuthService(clock=clock)


TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]
CultureServiceDep = Annotated[CultureService, Depends(get_culture_service)]
DataServiceDep = Annotated[DataService, Depends(get_data_service)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]

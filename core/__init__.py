# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the culture/task logic:
# - models/: Pydantic schemas for data validation
# - task_state.py: Task State Evaluator (pending / overdue / completed)
# - scheduling.py: Notification scheduler capability + in-process backend
# - services/: Cultures, tasks and passage counting, reminders, settings,
#   auth and bulk data operations
#
# Code in this package should NOT import from FastAPI routers or Celery.
# This keeps the logic testable and reusable.
# =============================================================================

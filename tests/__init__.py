# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Cellendar API:
# - test_task_state.py / test_reminder_service.py / test_task_service.py:
#   classification, alert scheduling and the passage counter
# - test_*_service.py: culture, settings and import/export services
# - test_supabase_client.py / test_workers.py: Supabase and Celery boundaries
# - test_api.py / test_websocket.py: HTTP and WebSocket surface
#
# Run tests with: pytest
# =============================================================================

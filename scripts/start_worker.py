#!/usr/bin/env python3
# =============================================================================
# scripts/start_worker.py - Celery Worker Entry Point
# =============================================================================
# Starts a Celery worker that delivers scheduled notifications.
#
# Usage:
#   # Start worker (development)
#   python scripts/start_worker.py
#
#   # Or use Celery CLI directly
#   celery -A workers.celery_app worker --loglevel=info -Q notifications,default
#
# Prerequisites:
#   - Redis must be running
#   - Environment variables must be set (.env file)
#   - NOTIFICATION_BACKEND=celery on the API side
# =============================================================================

from workers.celery_app import celery_app


def main():
    """Start the Celery worker."""
    print("=" * 60)
    print("Cellendar Notification Worker")
    print("=" * 60)
    print()
    print("Starting worker...")
    print("Press Ctrl+C to stop")
    print()

    celery_app.worker_main([
        "worker",
        "--loglevel=info",
        "--queues=notifications,default",
        "--concurrency=2",
    ])


if __name__ == "__main__":
    main()

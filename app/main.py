# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Cellendar API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import asyncio
import json
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.dependencies import get_notification_scheduler
from app.exceptions import (
    CellendarException,
    cellendar_exception_handler,
    validation_exception_handler,
)
from app.routers import health, cultures, tasks, notifications, data
from app.auth import routes as auth_routes
from app.websocket import WEBSOCKET_CHANNEL, notification_message, websocket_manager
from app.websocket import routes as websocket_routes
from lib.utils import utc_now

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# Background tasks started by the lifespan
_background_task = None
_shutdown_event = None


async def redis_pubsub_listener():
    """
    Background task that listens to Redis pub/sub and forwards alerts to
    WebSockets.

    This bridges Celery workers with WebSocket clients by:
    1. Subscribing to the Redis channel where workers publish fired alerts
    2. Sending each one to the owning user's connected clients
    """
    import redis.asyncio as aioredis

    logger.info("Starting Redis pub/sub listener for WebSocket notifications")

    redis_client = aioredis.from_url(settings.REDIS_URL)
    pubsub = redis_client.pubsub()

    try:
        await pubsub.subscribe(WEBSOCKET_CHANNEL)

        async for message in pubsub.listen():
            if _shutdown_event and _shutdown_event.is_set():
                break

            if message["type"] != "message":
                continue

            try:
                event = json.loads(message["data"])
            except json.JSONDecodeError as e:
                logger.warning(f"Invalid JSON in Redis message: {e}")
                continue

            user_id = event.pop("user_id", None)
            if user_id:
                await websocket_manager.broadcast(user_id, event)

    except asyncio.CancelledError:
        logger.info("Redis pub/sub listener cancelled")
    except Exception as e:
        logger.error(f"Redis pub/sub listener error: {e}")
    finally:
        try:
            await pubsub.unsubscribe(WEBSOCKET_CHANNEL)
            await redis_client.aclose()
        except Exception as e:
            logger.debug(f"Redis listener cleanup failed: {e}")


async def dispatch_due(scheduler, now) -> int:
    """
    Send every alert due at `now` to its owner's open WebSockets.

    Due alerts are removed from the scheduler whether or not anyone is
    connected.

    Returns:
        Number of alerts that reached at least one connection
    """
    delivered = 0
    for entry in scheduler.pop_due(now):
        user_id = entry.payload.user_id
        if not user_id:
            logger.debug(f"Dropping ownerless alert {entry.handle} for task {entry.payload.task_id}")
            continue
        sent = await websocket_manager.broadcast(
            user_id,
            notification_message(entry.payload, entry.fire_at.isoformat()),
        )
        if sent:
            delivered += 1
        else:
            logger.debug(
                f"No open connection for user {user_id}; "
                f"{entry.payload.kind.value} alert for task {entry.payload.task_id} not delivered"
            )
    return delivered


async def memory_dispatch_loop():
    """
    Deliver due alerts from the in-process scheduler.

    Runs every NOTIFICATION_POLL_SECONDS when NOTIFICATION_BACKEND=memory.
    """
    scheduler = get_notification_scheduler()
    logger.info(f"Starting in-memory notification dispatch every {settings.NOTIFICATION_POLL_SECONDS}s")

    try:
        while not (_shutdown_event and _shutdown_event.is_set()):
            await dispatch_due(scheduler, utc_now())
            await asyncio.sleep(settings.NOTIFICATION_POLL_SECONDS)
    except asyncio.CancelledError:
        logger.info("In-memory notification dispatch cancelled")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Starts the delivery side of the configured notification backend and
    stops it on shutdown.
    """
    global _background_task, _shutdown_event

    logger.info(f"Starting Cellendar API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    logger.info(f"Notification backend: {settings.NOTIFICATION_BACKEND}")

    _shutdown_event = asyncio.Event()
    if settings.NOTIFICATION_BACKEND == "memory":
        _background_task = asyncio.create_task(memory_dispatch_loop())
    else:
        _background_task = asyncio.create_task(redis_pubsub_listener())

    yield

    logger.info("Shutting down Cellendar API")

    _shutdown_event.set()
    if _background_task:
        _background_task.cancel()
        try:
            await _background_task
        except asyncio.CancelledError:
            pass


# Create FastAPI application
app = FastAPI(
    title="Cellendar API",
    description="""
## Cell Culture Tracking API

Track cell cultures, schedule media changes, passages and observations,
and get reminded before tasks are due and alerted when they are overdue.

### Key Features

- **Cultures**: passage number is only ever incremented, atomically
- **Tasks**: pending / overdue / completed is derived at read time
- **Completion**: completing a passaging task passages its culture exactly once
- **Notifications**: reminder before the due time, overdue alert one hour after
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Sign up, sign in, session refresh"},
        {"name": "Cultures", "description": "Manage cell cultures and passages"},
        {"name": "Tasks", "description": "Schedule, list and complete culture tasks"},
        {"name": "Notifications", "description": "Reminder and overdue alert settings"},
        {"name": "Data", "description": "Export, import and clear all data"},
        {"name": "WebSocket", "description": "Real-time alert delivery"},
        {"name": "Health", "description": "API health and readiness checks"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(CellendarException)
async def handle_cellendar_exception(request: Request, exc: CellendarException):
    """Handle the API's own error taxonomy."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return await cellendar_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_exception(request: Request, exc: RequestValidationError):
    """Malformed input is rejected as 400 before any persistence call."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

app.include_router(auth_routes.router, prefix="/api", tags=["Auth"])

# /health (bare, for load balancers) and /api/health/*
app.include_router(health.router, tags=["Health"])
app.include_router(health.router, prefix="/api", tags=["Health"])

app.include_router(cultures.router, prefix="/api/cultures", tags=["Cultures"])
app.include_router(tasks.router, prefix="/api/tasks", tags=["Tasks"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(data.router, prefix="/api/data", tags=["Data"])

app.include_router(websocket_routes.router, tags=["WebSocket"])


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Cellendar API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
    }

# =============================================================================
# app/websocket/routes.py - WebSocket Routes
# =============================================================================
# WebSocket endpoint through which fired reminders and overdue alerts reach
# the client.
#
# Connect: ws://host/ws/notifications?token={jwt}
#
# Events:
#   - {"type": "connected", "user_id": "..."}
#   - {"type": "notification", "kind": "reminder", "task_id": "...",
#      "title": "Cell Culture Task Reminder", "body": "Split 1:4 is due in 2 hours"}
# =============================================================================

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from app.auth.dependencies import verify_token
from app.exceptions import AuthError
from app.websocket.manager import websocket_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/notifications")
async def notifications_websocket(
    websocket: WebSocket,
    token: str = Query(..., description="JWT token for authentication")
):
    """
    Stream the caller's alerts as they fire.

    Authentication is required via the `token` query parameter; a bad
    token closes the socket with code 4001.
    """
    try:
        user = verify_token(token)
    except AuthError as e:
        logger.warning(f"WebSocket auth failed: {e.message}")
        await websocket.close(code=4001, reason="Invalid token")
        return

    user_id = user.user_id
    await websocket_manager.connect(user_id, websocket)

    try:
        await websocket.send_json({
            "type": "connected",
            "user_id": user_id,
            "message": "Connected to notifications"
        })

        while True:
            data = await websocket.receive_text()
            # Keepalive
            if data == "ping":
                await websocket.send_text("pong")
            else:
                logger.debug(f"WebSocket received: {data[:100]}")

    except WebSocketDisconnect:
        logger.info(f"WebSocket client disconnected for user {user_id}")
    finally:
        websocket_manager.disconnect(user_id, websocket)


@router.get("/ws/status")
async def websocket_status():
    """Connection statistics."""
    users = websocket_manager.get_connected_users()
    return {
        "total_connections": websocket_manager.get_connection_count(),
        "user_count": len(users),
    }

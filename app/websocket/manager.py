# =============================================================================
# app/websocket/manager.py - WebSocket Connection Manager
# =============================================================================
# Manages WebSocket connections per user and delivers fired alerts.
#
# Usage:
#   from app.websocket import websocket_manager
#
#   await websocket_manager.connect(user_id, websocket)
#   await websocket_manager.broadcast(user_id, {"type": "notification", ...})
#   websocket_manager.disconnect(user_id, websocket)
# =============================================================================

import logging
from typing import Dict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Tracks open WebSocket connections by user ID.

    A user may be connected from several devices at once; an alert is
    sent to all of them.
    """

    def __init__(self):
        # user_id -> set of WebSocket connections
        self.connections: Dict[str, Set[WebSocket]] = {}

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        """Accept a connection and start tracking it."""
        await websocket.accept()
        self.connections.setdefault(user_id, set()).add(websocket)
        logger.info(f"WebSocket connected for user {user_id}. Total connections: {self.get_connection_count()}")

    def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        """Stop tracking a connection."""
        sockets = self.connections.get(user_id)
        if sockets is not None:
            sockets.discard(websocket)
            if not sockets:
                del self.connections[user_id]
        logger.info(f"WebSocket disconnected for user {user_id}. Total connections: {self.get_connection_count()}")

    async def broadcast(self, user_id: str, message: dict) -> int:
        """
        Send a message to every connection a user has open.

        Connections that fail to receive are dropped.

        Returns:
            int: Number of clients the message was sent to
        """
        sockets = self.connections.get(user_id)
        if not sockets:
            logger.debug(f"No connections for user {user_id}, skipping {message.get('type')}")
            return 0

        dead_connections: Set[WebSocket] = set()
        sent_count = 0

        for websocket in list(sockets):
            try:
                await websocket.send_json(message)
                sent_count += 1
            except Exception as e:
                logger.warning(f"Failed to send to WebSocket: {e}")
                dead_connections.add(websocket)

        for websocket in dead_connections:
            self.disconnect(user_id, websocket)

        logger.debug(f"Sent {message.get('type')} to {sent_count} clients of user {user_id}")
        return sent_count

    def get_connection_count(self, user_id: str | None = None) -> int:
        """Connections for one user, or in total."""
        if user_id:
            return len(self.connections.get(user_id, set()))
        return sum(len(sockets) for sockets in self.connections.values())

    def get_connected_users(self) -> list[str]:
        """User IDs with at least one open connection."""
        return list(self.connections.keys())


# Global singleton instance
websocket_manager = ConnectionManager()

"""
WebSocket connection registry for pushing conversation messages.

One process-wide ConnectionManager keeps the open sockets of each user.
Messages go only to the sockets of the user the conversation belongs to.
"""

import asyncio
import json
import logging
from typing import Any
from uuid import UUID

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks active WebSocket connections per user."""

    def __init__(self) -> None:
        self._connections: dict[UUID, set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: UUID) -> None:
        """Accept and register a new WebSocket connection."""
        await websocket.accept()
        async with self._lock:
            self._connections.setdefault(user_id, set()).add(websocket)

    async def disconnect(self, websocket: WebSocket, user_id: UUID) -> None:
        async with self._lock:
            sockets = self._connections.get(user_id)
            if sockets is None:
                return
            sockets.discard(websocket)
            if not sockets:
                del self._connections[user_id]

    async def send_to_user(self, user_id: UUID, message: dict[str, Any]) -> int:
        """
        Send a message to every open connection of a user.

        Sockets that fail to receive are dropped from the registry. Returns the
        number of connections the message reached.
        """
        async with self._lock:
            connections = set(self._connections.get(user_id, set()))

        if not connections:
            return 0

        data = json.dumps(message)
        closed = []
        for ws in connections:
            try:
                await ws.send_text(data)
            except Exception:
                logger.info("Dropping closed WebSocket for user %s", user_id)
                closed.append(ws)

        if closed:
            async with self._lock:
                sockets = self._connections.get(user_id)
                if sockets is not None:
                    sockets.difference_update(closed)
                    if not sockets:
                        del self._connections[user_id]

        return len(connections) - len(closed)

    def get_connected_count(self, user_id: UUID) -> int:
        return len(self._connections.get(user_id, set()))


# Singleton instance
manager = ConnectionManager()

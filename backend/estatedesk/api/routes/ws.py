"""
WebSocket endpoint for real-time conversation messages.

Clients connect to /ws/messages?token=<jwt> (or rely on the access_token
cookie) and receive {"type": "newMessage", "data": {...}} whenever n8n posts
an assistant message for them.
"""

from uuid import UUID

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from estatedesk.api.deps import decode_access_token
from estatedesk.db.models import User
from estatedesk.db.session import AsyncSessionLocal
from estatedesk.services.broadcast import manager

router = APIRouter(prefix="/ws", tags=["websocket"])

# Application close codes (4000-4999 range)
CLOSE_AUTH_REQUIRED = 4001


async def _authenticate(websocket: WebSocket, token: str | None) -> UUID | None:
    user_id = decode_access_token(token) if token else None
    if user_id is None:
        cookie = websocket.cookies.get("access_token")
        if cookie:
            user_id = decode_access_token(cookie)
    if user_id is None:
        return None

    async with AsyncSessionLocal() as db:
        user = await db.get(User, user_id)
    return user.id if user else None


@router.websocket("/messages")
async def websocket_messages(websocket: WebSocket, token: str | None = Query(None)):
    user_id = await _authenticate(websocket, token)
    if user_id is None:
        await websocket.close(code=CLOSE_AUTH_REQUIRED, reason="Authentication required")
        return

    await manager.connect(websocket, user_id)
    try:
        while True:
            data = await websocket.receive_text()
            # Heartbeat
            if data == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(websocket, user_id)

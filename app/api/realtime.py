"""
app/api/realtime.py

WebSocket channel for real-time events. Each verified user joins the room
named after their id; the server only pushes, incoming frames are ignored.
"""

from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from app.api.deps import authenticate_token, extract_token
from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.logging import get_logger
from app.services.realtime_service import get_realtime_publisher

logger = get_logger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket, token: Optional[str] = Query(None)):
    token = token or extract_token(
        websocket.headers.get("authorization"),
        websocket.cookies.get(settings.COOKIE_NAME),
    )
    try:
        user = await authenticate_token(token)
    except AuthenticationError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    if not user.get("is_verified"):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    publisher = get_realtime_publisher()
    user_id = str(user["_id"])
    await publisher.connect(user_id, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await publisher.disconnect(user_id, websocket)

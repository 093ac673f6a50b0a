"""
app/services/realtime_service.py

Purpose: Real-time event publishing

- Tracks open WebSocket connections per user id ("rooms")
- Pushes events to one user or broadcasts to every connection
- Drops sockets that fail to receive
"""

from collections import defaultdict
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from app.core.logging import get_logger
from app.schemas.response import serialize_document

logger = get_logger(__name__)


class RealtimePublisher:
    """
    In-process registry of live connections.

    This is the only in-memory state of the process; it is lost on restart
    and clients are expected to reconnect.
    """

    def __init__(self):
        self._rooms: Dict[str, Set[WebSocket]] = defaultdict(set)

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self._rooms[user_id].add(websocket)
        logger.info("🟢 Socket connected", extra={"user_id": user_id})

    async def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        room = self._rooms.get(user_id)
        if room is not None:
            room.discard(websocket)
            if not room:
                del self._rooms[user_id]
        logger.info("🔴 Socket disconnected", extra={"user_id": user_id})

    def connection_count(self, user_id: Optional[str] = None) -> int:
        if user_id is not None:
            return len(self._rooms.get(user_id, ()))
        return sum(len(room) for room in self._rooms.values())

    async def emit_to_user(self, user_id: Any, event: str, payload: Dict[str, Any]) -> None:
        """Sends an event to every connection of one user."""
        room_id = str(user_id)
        targets = [(room_id, ws) for ws in list(self._rooms.get(room_id, ()))]
        await self._send(targets, event, payload)

    async def broadcast(self, event: str, payload: Dict[str, Any]) -> None:
        """Sends an event to every connection."""
        targets = [
            (room_id, ws)
            for room_id, room in list(self._rooms.items())
            for ws in list(room)
        ]
        await self._send(targets, event, payload)

    async def _send(self, targets, event: str, payload: Dict[str, Any]) -> None:
        message = {"event": event, "data": jsonable_encoder(serialize_document(payload))}
        for room_id, websocket in targets:
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning(f"Dropping dead socket: {e}", extra={"user_id": room_id})
                await self.disconnect(room_id, websocket)


# Global publisher instance
_publisher: Optional[RealtimePublisher] = None


def get_realtime_publisher() -> RealtimePublisher:
    """Get or create the publisher instance."""
    global _publisher
    if _publisher is None:
        _publisher = RealtimePublisher()
    return _publisher

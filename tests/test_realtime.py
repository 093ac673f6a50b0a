import asyncio

import pytest
from bson import ObjectId
from starlette.websockets import WebSocketDisconnect

from app.core.security import create_access_token
from app.services.realtime_service import RealtimePublisher


def run(coro):
    return asyncio.run(coro)


class FakeSocket:
    def __init__(self, fail=False):
        self.sent = []
        self.accepted = False
        self.fail = fail

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(message)


def test_emit_reaches_only_the_users_room():
    publisher = RealtimePublisher()
    mine, theirs = FakeSocket(), FakeSocket()
    user_id = ObjectId()
    run(publisher.connect(str(user_id), mine))
    run(publisher.connect("someone-else", theirs))

    run(publisher.emit_to_user(user_id, "payment:verified", {"payment_id": ObjectId(), "hours": 5}))

    assert mine.accepted
    assert len(mine.sent) == 1
    assert mine.sent[0]["event"] == "payment:verified"
    assert isinstance(mine.sent[0]["data"]["payment_id"], str)
    assert theirs.sent == []


def test_broadcast_drops_dead_sockets():
    publisher = RealtimePublisher()
    alive, dead = FakeSocket(), FakeSocket(fail=True)
    run(publisher.connect("a", alive))
    run(publisher.connect("b", dead))

    run(publisher.broadcast("quotation:requested", {"_id": ObjectId()}))

    assert len(alive.sent) == 1
    assert "id" in alive.sent[0]["data"]
    assert publisher.connection_count() == 1
    assert publisher.connection_count("b") == 0


def test_socket_requires_verified_user(client, make_user):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/api/v1/ws"):
            pass

    pending = make_user(verified=False)
    token = create_access_token(str(pending["_id"]), pending["role"])
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/api/v1/ws?token={token}"):
            pass

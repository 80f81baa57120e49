import asyncio
import json
from types import SimpleNamespace

import pytest
from fastapi.websockets import WebSocketState

from relay.core.config import Settings
from relay.state.member_registry import MemberRegistry
from relay.ws.broadcaster import RoomBroadcaster
from relay.ws.dispatcher import RelayDispatcher


class FakeConnection:
    """Stands in for a WebSocket: records what was sent, can be closed or made to fail."""

    def __init__(self, name: str, fail: bool = False):
        self.name = name
        self.fail = fail
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent = []

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError(f"{self.name} send failed")
        self.sent.append(data)

    def close(self):
        self.client_state = WebSocketState.DISCONNECTED

    def of_type(self, kind):
        return [m["payload"] for m in self.sent if m["type"] == kind]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def make_conn():
    return FakeConnection


@pytest.fixture
def relay():
    registry = MemberRegistry()
    broadcaster = RoomBroadcaster(registry)
    dispatcher = RelayDispatcher(registry, broadcaster, Settings())

    def send(conn, frame):
        raw = frame if isinstance(frame, str) else json.dumps(frame)
        asyncio.run(dispatcher.handle_frame(conn, raw))

    def join(conn, username, room):
        send(conn, {"type": "join", "payload": {"username": username, "roomCode": room}})

    def chat(conn, text):
        send(conn, {"type": "chat", "payload": {"message": text}})

    def disconnect(conn):
        asyncio.run(dispatcher.handle_disconnect(conn))

    return SimpleNamespace(
        registry=registry,
        broadcaster=broadcaster,
        dispatcher=dispatcher,
        send=send,
        join=join,
        chat=chat,
        disconnect=disconnect,
    )

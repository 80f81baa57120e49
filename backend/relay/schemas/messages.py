from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Literal

from pydantic import BaseModel, Field, StrictStr


def generate_message_id() -> str:
    return f"msg_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-01-01T12:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# Client -> server

class InboundFrame(BaseModel):
    type: StrictStr
    payload: Dict[str, Any] = Field(default_factory=dict)


class JoinPayload(BaseModel):
    username: StrictStr
    roomCode: StrictStr


class ChatPayload(BaseModel):
    message: StrictStr


# Server -> client

class ChatMessage(BaseModel):
    id: str = Field(default_factory=generate_message_id)
    username: str
    message: str
    timestamp: str = Field(default_factory=utc_timestamp)
    type: Literal["chat", "system"] = "chat"


class RoomInfo(BaseModel):
    roomCode: str
    userCount: int


class Notification(BaseModel):
    message: str


def envelope(kind: str, payload: BaseModel) -> Dict[str, Any]:
    return {"type": kind, "payload": payload.model_dump()}

from __future__ import annotations

from typing import Any, Dict, List
import asyncio

from fastapi.websockets import WebSocketState

from relay.core.logging_config import get_logger
from relay.schemas.messages import ChatMessage, RoomInfo, envelope
from relay.state.member_registry import Member, MemberRegistry


logger = get_logger(__name__)


def is_sendable(connection: Any) -> bool:
    return (
        getattr(connection, "client_state", None) == WebSocketState.CONNECTED
        and getattr(connection, "application_state", None) == WebSocketState.CONNECTED
    )


class RoomBroadcaster:
    """Best-effort fan-out of envelopes to the current members of a room.

    Membership is read once per call. Members whose connection is not open
    are skipped, and a failed send is treated as if the connection had
    already closed: it is logged and never unregisters the member.
    """

    def __init__(self, registry: MemberRegistry) -> None:
        self._registry = registry

    async def send_to(self, connection: Any, message: Dict[str, Any]) -> bool:
        if not is_sendable(connection):
            return False
        try:
            await connection.send_json(message)
        except Exception as exc:
            # Closed between the state check and the send
            logger.debug("send failed type=%s err=%r", message.get("type"), exc)
            return False
        return True

    async def broadcast_json(self, room_id: str, message: Dict[str, Any]) -> int:
        return await self._fan_out(room_id, self._registry.members_of(room_id), message)

    async def broadcast_message(self, room_id: str, message: ChatMessage) -> int:
        return await self.broadcast_json(room_id, envelope("message", message))

    async def broadcast_room_info(self, room_id: str) -> int:
        # Count and recipients come from the same snapshot
        members = self._registry.members_of(room_id)
        info = RoomInfo(roomCode=room_id, userCount=len(members))
        return await self._fan_out(room_id, members, envelope("roomInfo", info))

    async def _fan_out(self, room_id: str, members: List[Member], message: Dict[str, Any]) -> int:
        if not members:
            return 0
        results = await asyncio.gather(
            *(self.send_to(m.connection, message) for m in members),
            return_exceptions=True,
        )
        delivered = sum(1 for r in results if r is True)
        logger.debug(
            "broadcast room=%s type=%s delivered=%d/%d",
            room_id, message.get("type"), delivered, len(members),
        )
        return delivered

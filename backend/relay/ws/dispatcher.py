from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from relay.core.config import Settings
from relay.core.logging_config import get_logger
from relay.schemas.messages import (
    ChatMessage,
    ChatPayload,
    InboundFrame,
    JoinPayload,
    Notification,
    envelope,
)
from relay.state.member_registry import MemberRegistry
from relay.ws.broadcaster import RoomBroadcaster


logger = get_logger(__name__)


class RelayDispatcher:
    """Turns per-connection events (frame, close) into registry updates and broadcasts.

    Malformed frames, chat from unjoined connections and blank chat bodies
    are dropped without a reply; the connection stays open.
    """

    def __init__(self, registry: MemberRegistry, broadcaster: RoomBroadcaster, settings: Settings) -> None:
        self.registry = registry
        self.broadcaster = broadcaster
        self.settings = settings

    async def handle_frame(self, connection: Any, raw: str) -> None:
        try:
            frame = InboundFrame.model_validate(json.loads(raw))
            if frame.type == "join":
                await self.handle_join(connection, JoinPayload.model_validate(frame.payload))
            elif frame.type == "chat":
                await self.handle_chat(connection, ChatPayload.model_validate(frame.payload))
            else:
                logger.debug("ignoring frame type=%s", frame.type)
        except (ValueError, RecursionError, ValidationError) as exc:
            # ValueError covers JSONDecodeError and oversized integer literals
            logger.debug("dropping malformed frame: %s", exc)

    async def handle_join(self, connection: Any, payload: JoinPayload) -> None:
        member = self.registry.upsert_member(connection, payload.username, payload.roomCode)
        logger.info(
            "member joined room=%s user=%s id=%s", member.room_id, member.display_name, member.member_id
        )
        await self.broadcaster.broadcast_room_info(member.room_id)
        await self.broadcaster.broadcast_message(
            member.room_id, self._system_message(f"{member.display_name} joined the room")
        )
        if self.settings.join_notification:
            await self.broadcaster.send_to(
                connection,
                envelope("notification", Notification(message=f"You joined room {member.room_id}")),
            )

    async def handle_chat(self, connection: Any, payload: ChatPayload) -> None:
        member = self.registry.find_by_connection(connection)
        if member is None or not payload.message.strip():
            return
        message = ChatMessage(username=member.display_name, message=payload.message, type="chat")
        await self.broadcaster.broadcast_message(member.room_id, message)

    async def handle_disconnect(self, connection: Any) -> None:
        member = self.registry.remove_by_connection(connection)
        if member is None:
            return
        logger.info(
            "member left room=%s user=%s id=%s", member.room_id, member.display_name, member.member_id
        )
        await self.broadcaster.broadcast_message(
            member.room_id, self._system_message(f"{member.display_name} left the room")
        )
        await self.broadcaster.broadcast_room_info(member.room_id)

    def _system_message(self, text: str) -> ChatMessage:
        return ChatMessage(username=self.settings.system_sender, message=text, type="system")

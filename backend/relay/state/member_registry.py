from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def generate_member_id() -> str:
    return f"user_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


@dataclass
class Member:
    connection: Any
    display_name: str
    room_id: str
    member_id: str = field(default_factory=generate_member_id)
    joined_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class MemberRegistry:
    """Thread-safe in-memory mapping of live connections to room memberships.

    Connections are keyed by identity: WebSocket objects compare by their
    ASGI scope, so two sockets may be equal without being the same channel.
    Rooms only exist in the index while they have at least one member.
    """

    def __init__(self) -> None:
        self._by_connection: Dict[int, Member] = {}
        self._rooms: Dict[str, Dict[int, Member]] = {}
        self._lock = threading.Lock()

    def upsert_member(self, connection: Any, display_name: str, room_id: str) -> Member:
        """Replace any membership held by ``connection`` with a fresh one."""
        member = Member(connection=connection, display_name=display_name, room_id=room_id)
        key = id(connection)
        with self._lock:
            self._discard(key)
            self._by_connection[key] = member
            self._rooms.setdefault(room_id, {})[key] = member
        return member

    def find_by_connection(self, connection: Any) -> Optional[Member]:
        with self._lock:
            return self._by_connection.get(id(connection))

    def remove_by_connection(self, connection: Any) -> Optional[Member]:
        with self._lock:
            return self._discard(id(connection))

    def members_of(self, room_id: str) -> List[Member]:
        with self._lock:
            return list(self._rooms.get(room_id, {}).values())

    def count(self, room_id: str) -> int:
        with self._lock:
            return len(self._rooms.get(room_id, {}))

    def room_ids(self) -> List[str]:
        with self._lock:
            return list(self._rooms)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_connection)

    def _discard(self, key: int) -> Optional[Member]:
        # Caller must hold the lock
        member = self._by_connection.pop(key, None)
        if member is None:
            return None
        room = self._rooms.get(member.room_id)
        if room is not None:
            room.pop(key, None)
            if not room:
                self._rooms.pop(member.room_id, None)
        return member

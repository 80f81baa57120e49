from __future__ import annotations

import random
import string

from fastapi import APIRouter, Depends, HTTPException, Request

from relay.schemas.room import CreateRoomResponse, RoomOccupancy
from relay.state.member_registry import MemberRegistry

router = APIRouter(prefix="/rooms", tags=["rooms"])

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 100


def get_registry(request: Request) -> MemberRegistry:
    return request.app.state.registry  # type: ignore[attr-defined]


def generate_room_code(length: int = 6) -> str:
    return "".join(random.choices(ROOM_CODE_ALPHABET, k=length))


@router.post("", response_model=CreateRoomResponse, status_code=201)
async def create_room(request: Request, registry: MemberRegistry = Depends(get_registry)) -> CreateRoomResponse:
    # Rooms are implicit: this only hands out a code nobody is using right now
    length = request.app.state.settings.room_code_length  # type: ignore[attr-defined]
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_room_code(length)
        if registry.count(code) == 0:
            return CreateRoomResponse(roomCode=code)
    raise HTTPException(status_code=503, detail="No free room code available")


@router.get("/{roomCode}", response_model=RoomOccupancy)
async def get_room(roomCode: str, registry: MemberRegistry = Depends(get_registry)) -> RoomOccupancy:
    count = registry.count(roomCode)
    if count == 0:
        raise HTTPException(status_code=404, detail="Room not found")
    return RoomOccupancy(roomCode=roomCode, userCount=count)

from __future__ import annotations

from pydantic import BaseModel, Field


class CreateRoomResponse(BaseModel):
    roomCode: str = Field(description="Unoccupied room code the client can join")


class RoomOccupancy(BaseModel):
    roomCode: str
    userCount: int

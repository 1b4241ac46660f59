"""Pydantic data schemas used across the relay.

Wire names are camelCase because that is what the browser client speaks;
the models are named after what they carry.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

# -----------------------------
# Runtime
# -----------------------------

class ChatMessage(BaseModel):
    """A relayed chat line, as stored in history and replayed on bind."""

    roomId: str
    username: str
    content: str
    sentAt: int  # epoch milliseconds


class RoomSummary(BaseModel):
    """One entry of the public room directory."""

    id: str
    memberCount: int
    maxUsers: int
    # Milliseconds until eviction; ``None`` while the room has members.
    ttl: Optional[int] = None


# -----------------------------
# REST request / response models
# -----------------------------

class CreateRoomRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    hidden: bool = False
    maxUsers: Optional[int] = None


class JoinRoomRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class RoomResponse(BaseModel):
    roomId: str
    memberId: str


# -----------------------------
# Server -> client frames
# -----------------------------

def users_frame(users: List[str]) -> dict:
    return {"type": "room.users", "users": users}


def history_frame(messages: List[ChatMessage]) -> dict:
    return {"type": "room.history", "messages": [m.model_dump() for m in messages]}


def message_frame(message: ChatMessage) -> dict:
    return {
        "type": "room.message",
        "username": message.username,
        "content": message.content,
        "sentAt": message.sentAt,
    }


def rooms_frame(rooms: List[RoomSummary]) -> dict:
    return {"type": "rooms.list", "rooms": [r.model_dump() for r in rooms]}


__all__ = [
    "ChatMessage",
    "RoomSummary",
    "CreateRoomRequest",
    "JoinRoomRequest",
    "RoomResponse",
    "users_frame",
    "history_frame",
    "message_frame",
    "rooms_frame",
]

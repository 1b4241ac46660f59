from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..errors import RoomError
from ..lobby import broadcast_rooms, collect_public_rooms
from ..schemas import CreateRoomRequest, JoinRoomRequest, RoomResponse, RoomSummary
from ..state import RelayState, get_relay

router = APIRouter(prefix="/api", tags=["rooms"])


@router.get("/rooms", response_model=List[RoomSummary])
async def list_rooms(relay: RelayState = Depends(get_relay)):
    return collect_public_rooms(relay)


@router.post("/rooms", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(req: CreateRoomRequest, relay: RelayState = Depends(get_relay)):
    try:
        room_id, member_id = relay.registry.create_room(
            req.username, req.password, not req.hidden, req.maxUsers
        )
    except RoomError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)

    if not req.hidden:
        await broadcast_rooms(relay)
    return RoomResponse(roomId=room_id, memberId=member_id)


@router.post("/rooms/{room_id}/join", response_model=RoomResponse)
async def join_room(room_id: str, req: JoinRoomRequest, relay: RelayState = Depends(get_relay)):
    try:
        member_id = relay.registry.join_room(room_id, req.username, req.password)
    except RoomError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)

    await relay.broadcaster.send_users(room_id)
    room = relay.registry.get(room_id)
    if room is not None and room.is_public:
        await broadcast_rooms(relay)
    return RoomResponse(roomId=room_id, memberId=member_id)

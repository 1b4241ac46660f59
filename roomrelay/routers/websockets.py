from __future__ import annotations

from fastapi import APIRouter, WebSocket

from ..lobby import collect_public_rooms
from ..schemas import rooms_frame
from ..session import ConnectionSession
from ..state import RelayState

router = APIRouter(prefix="", tags=["ws"])


def _relay_of(ws: WebSocket) -> RelayState:
    return ws.app.state.relay


@router.websocket("/ws/lobby")
async def lobby_ws_endpoint(ws: WebSocket):
    """Directory-only listener: receives ``rooms.list`` pushes, sends nothing."""
    relay = _relay_of(ws)
    await ws.accept()
    relay.broadcaster.register(ws)
    try:
        await relay.broadcaster.send_to(ws, rooms_frame(collect_public_rooms(relay)))
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        relay.broadcaster.unregister(ws)


@router.websocket("/ws")
async def chat_ws_endpoint(ws: WebSocket):
    await ConnectionSession(ws, _relay_of(ws)).run()

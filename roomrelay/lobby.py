"""Utility helpers for maintaining and broadcasting the public room directory."""
from __future__ import annotations

from typing import TYPE_CHECKING, List

from .schemas import RoomSummary, rooms_frame

if TYPE_CHECKING:
    from .state import RelayState


def collect_public_rooms(state: "RelayState") -> List[RoomSummary]:
    """Return a summary of every public room, with ttl relative to now."""
    return state.registry.list_public_rooms(state.clock())


async def broadcast_rooms(state: "RelayState") -> None:
    """Push the current directory to *all* open connections."""
    if not state.broadcaster.connections:
        return
    await state.broadcaster.send_to_all(rooms_frame(collect_public_rooms(state)))


__all__ = ["collect_public_rooms", "broadcast_rooms"]

"""Fan-out of JSON frames to live WebSocket connections.

The broadcaster keeps the registry of every open connection together with its
room binding (``None`` until the handshake succeeds, and forever for lobby
listeners).
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from .history import MessageHistory
from .registry import RoomRegistry
from .schemas import ChatMessage, message_frame, users_frame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Binding:
    """The ``(room, member)`` pair a connection was bound to by its handshake."""

    room_id: str
    member_id: str


def is_open(ws: WebSocket) -> bool:
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


class Broadcaster:
    """Delivers payloads to connections, filtered by room when asked to."""

    def __init__(self, registry: RoomRegistry, history: MessageHistory, clock: Callable[[], int]) -> None:
        self.registry = registry
        self.history = history
        self._clock = clock
        self.connections: Dict[WebSocket, Optional[Binding]] = {}

    # -------------------- Connection registry -------------------- #

    def register(self, ws: WebSocket) -> None:
        self.connections.setdefault(ws, None)

    def bind(self, ws: WebSocket, binding: Binding) -> None:
        self.connections[ws] = binding

    def unregister(self, ws: WebSocket) -> Optional[Binding]:
        return self.connections.pop(ws, None)

    def binding_of(self, ws: WebSocket) -> Optional[Binding]:
        return self.connections.get(ws)

    def connections_in(self, room_id: str) -> List[WebSocket]:
        return [
            ws for ws, binding in self.connections.items()
            if binding is not None and binding.room_id == room_id
        ]

    def connections_bound_to(self, binding: Binding) -> List[WebSocket]:
        return [ws for ws, bound in self.connections.items() if bound == binding]

    # -------------------- Delivery -------------------- #

    async def _deliver(self, recipients: Iterable[WebSocket], text: str) -> int:
        targets = [ws for ws in recipients if is_open(ws)]
        if not targets:
            return 0
        results = await asyncio.gather(
            *(ws.send_text(text) for ws in targets), return_exceptions=True
        )
        for ws, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning("Dropping frame for %s: %s", ws.client, result)
        return len(targets)

    async def send_to(self, ws: WebSocket, payload: dict) -> None:
        await self._deliver([ws], json.dumps(payload))

    async def send_to_room(self, room_id: str, payload: dict) -> int:
        """Send *payload* to every bound, open connection of *room_id*."""
        return await self._deliver(self.connections_in(room_id), json.dumps(payload))

    async def send_to_all(self, payload: dict) -> int:
        """Send *payload* to every open connection regardless of room."""
        return await self._deliver(list(self.connections), json.dumps(payload))

    async def send_users(self, room_id: str) -> None:
        await self.send_to_room(room_id, users_frame(self.registry.member_names(room_id)))

    # -------------------- Chat path -------------------- #

    async def relay_message(self, binding: Binding, content: str) -> Optional[ChatMessage]:
        """Store and fan out a chat line sent by *binding*'s member.

        The author name comes from the registry, never from the client.
        Blank content is dropped without storing.
        """
        text = content.strip()
        if not text:
            return None
        author = self.registry.display_name(binding.room_id, binding.member_id)
        if author is None:
            logger.debug("Message from stale binding %s dropped", binding)
            return None

        message = ChatMessage(
            roomId=binding.room_id,
            username=author,
            content=text,
            sentAt=self._clock(),
        )
        self.history.append(message)
        await self.send_to_room(binding.room_id, message_frame(message))
        return message


__all__ = ["Binding", "Broadcaster", "is_open"]

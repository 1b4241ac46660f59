"""Per-connection membership state machine.

Every chat WebSocket walks ``UNBOUND -> BOUND -> CLOSED``:

* ``UNBOUND``: accepted, waiting for exactly one ``connect`` frame naming a
  live member of a live room. Anything else closes the socket.
* ``BOUND``: the connection receives the room's member list and retained
  history, then every frame is treated as chat input. A newer connection
  for the same member replaces this one, which is closed with 4003 and
  leaves the member in the room.
* ``CLOSED``: terminal. A bound member is removed from its room and the
  remaining connections are told.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Optional, Union

from fastapi import WebSocket

from .broadcast import Binding, is_open
from .constants import CLOSE_POLICY_VIOLATION, CLOSE_SUPERSEDED
from .frames import ChatFrame, ConnectFrame, parse_frame
from .lobby import broadcast_rooms
from .schemas import history_frame, users_frame
from .state import RelayState

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNBOUND = "unbound"
    BOUND = "bound"
    CLOSED = "closed"


class ConnectionSession:
    """Drives one chat WebSocket from accept to teardown."""

    def __init__(self, ws: WebSocket, relay: RelayState) -> None:
        self.ws = ws
        self.relay = relay
        self.state = SessionState.UNBOUND
        self.binding: Optional[Binding] = None

    async def run(self) -> None:
        await self.ws.accept()
        self.relay.broadcaster.register(self.ws)
        try:
            if await self._handshake():
                await self._pump()
        finally:
            await self.close()

    # -------------------- Transport helpers -------------------- #

    async def _receive(self) -> Optional[Union[str, bytes]]:
        """Return the next frame body, or ``None`` once the peer has gone."""
        message = await self.ws.receive()
        if message["type"] == "websocket.disconnect":
            return None
        text = message.get("text")
        return text if text is not None else message.get("bytes")

    async def _reject(self, reason: str) -> None:
        logger.info("Handshake rejected (%s) for %s", reason, self.ws.client)
        if is_open(self.ws):
            await self.ws.close(code=CLOSE_POLICY_VIOLATION)

    async def _supersede(self, binding: Binding) -> None:
        """Close every other connection already bound to *binding*."""
        broadcaster = self.relay.broadcaster
        for previous in broadcaster.connections_bound_to(binding):
            if previous is self.ws:
                continue
            broadcaster.unregister(previous)
            logger.info("Member %s reconnected; closing previous connection %s", binding.member_id, previous.client)
            if not is_open(previous):
                continue
            try:
                await previous.close(code=CLOSE_SUPERSEDED)
            except Exception as exc:
                logger.warning("Could not close superseded connection %s: %s", previous.client, exc)

    # -------------------- States -------------------- #

    async def _handshake(self) -> bool:
        try:
            raw = await asyncio.wait_for(self._receive(), timeout=self.relay.handshake_timeout)
        except asyncio.TimeoutError:
            await self._reject("timeout")
            return False
        if raw is None:
            return False

        frame = parse_frame(raw)
        if not isinstance(frame, ConnectFrame):
            await self._reject("first frame was not a handshake")
            return False
        if not self.relay.registry.is_member(frame.roomId, frame.memberId):
            await self._reject(f"no member {frame.memberId} in room {frame.roomId}")
            return False

        self.binding = Binding(frame.roomId, frame.memberId)
        self.relay.broadcaster.bind(self.ws, self.binding)
        self.relay.registry.claim(frame.roomId, frame.memberId)
        await self._supersede(self.binding)
        self.state = SessionState.BOUND
        logger.info("Connection bound to room %s as member %s", frame.roomId, frame.memberId)

        broadcaster = self.relay.broadcaster
        await broadcaster.send_to(self.ws, users_frame(self.relay.registry.member_names(frame.roomId)))
        history = self.relay.history.history_for(frame.roomId, self.relay.clock())
        await broadcaster.send_to(self.ws, history_frame(history))
        return True

    async def _pump(self) -> None:
        assert self.binding is not None
        while True:
            raw = await self._receive()
            if raw is None:
                return
            if self.relay.broadcaster.binding_of(self.ws) != self.binding:
                return
            frame = parse_frame(raw)
            if isinstance(frame, ChatFrame):
                await self.relay.broadcaster.relay_message(self.binding, frame.content)
            else:
                logger.debug("Ignoring frame in room %s: %s", self.binding.room_id, frame)

    async def close(self) -> None:
        """Tear the session down; safe to call more than once."""
        if self.state == SessionState.CLOSED:
            return
        was_bound = self.state == SessionState.BOUND
        self.state = SessionState.CLOSED
        # A superseded connection was already unregistered and no longer owns
        # the member.
        still_bound = self.relay.broadcaster.unregister(self.ws) is not None
        if not was_bound or not still_bound or self.binding is None:
            return

        room = self.relay.registry.leave_room(self.binding.room_id, self.binding.member_id)
        logger.info("Connection for member %s in room %s closed", self.binding.member_id, self.binding.room_id)
        if room is None:
            return
        await self.relay.broadcaster.send_users(room.room_id)
        if room.is_public:
            await broadcast_rooms(self.relay)


__all__ = ["ConnectionSession", "SessionState"]

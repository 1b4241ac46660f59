"""Periodic garbage collection of idle rooms and stale chat history."""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Set

from .lobby import broadcast_rooms
from .room import Room
from .state import RelayState

logger = logging.getLogger(__name__)


class Sweeper:
    """Runs :meth:`sweep_once` every *interval* seconds on the server's loop."""

    def __init__(self, relay: RelayState, interval: Optional[float] = None) -> None:
        self.relay = relay
        self.interval = interval if interval is not None else relay.settings.sweeper.interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="roomrelay-sweeper")
        logger.info("Sweeper started (every %ss)", self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("Sweep failed; retrying next tick")

    # -------------------- Sweeps -------------------- #

    def _forget_history(self, room: Room) -> None:
        self.relay.history.drop_room(room.room_id)

    def sweep_unclaimed(self, now: int) -> List[Room]:
        """Drop members that never bound a connection; return the rooms touched."""
        return self.relay.registry.release_unclaimed(now)

    def sweep_rooms(self, now: int) -> Set[str]:
        """Evict expired rooms; return the public ones that went away."""
        return self.relay.registry.evict_expired(now, on_evict=self._forget_history)

    def sweep_messages(self, now: int) -> int:
        return self.relay.history.prune_expired(now)

    async def sweep_once(self, now: Optional[int] = None) -> None:
        now = self.relay.clock() if now is None else now
        released = self.sweep_unclaimed(now)
        evicted_public = self.sweep_rooms(now)
        pruned = self.sweep_messages(now)
        logger.debug(
            "Sweep done: %d room(s) lost unclaimed members, %d public room(s) evicted, %d message(s) pruned",
            len(released), len(evicted_public), pruned,
        )
        for room in released:
            await self.relay.broadcaster.send_users(room.room_id)
        if evicted_public or any(room.is_public for room in released):
            await broadcast_rooms(self.relay)


__all__ = ["Sweeper"]

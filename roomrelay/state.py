"""Centralised in-memory runtime state.

One ``RelayState`` is built per application and handed to every component
that needs it, so tests can run any number of independent relays side by side.
"""
from __future__ import annotations

import time
from typing import Callable, Optional

from fastapi import Request

from .broadcast import Broadcaster
from .config import AppSettings
from .history import MessageHistory
from .registry import RoomRegistry


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class RelayState:
    """Owns the room registry, message history and connection registry."""

    def __init__(self, settings: Optional[AppSettings] = None, clock: Optional[Callable[[], int]] = None):
        self.settings = settings or AppSettings()
        self.clock: Callable[[], int] = clock or now_ms

        rooms_cfg = self.settings.rooms
        self.registry = RoomRegistry(
            self.clock,
            idle_ttl_seconds=rooms_cfg.idle_ttl_seconds,
            min_capacity=rooms_cfg.min_capacity,
            max_capacity=rooms_cfg.max_capacity,
            min_password_length=rooms_cfg.min_password_length,
            claim_timeout_seconds=rooms_cfg.claim_timeout_seconds,
        )
        self.history = MessageHistory(self.settings.messages.retention_seconds)
        self.broadcaster = Broadcaster(self.registry, self.history, self.clock)

    @property
    def handshake_timeout(self) -> Optional[float]:
        timeout = self.settings.rooms.handshake_timeout_seconds
        return timeout if timeout > 0 else None


def get_relay(request: Request) -> RelayState:
    """FastAPI dependency returning the relay owned by the running app."""
    return request.app.state.relay


__all__ = ["RelayState", "get_relay", "now_ms"]

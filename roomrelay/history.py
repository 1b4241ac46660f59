"""Short-lived chat history, replayed to connections when they bind."""
from __future__ import annotations

import logging
from typing import List

from .constants import MESSAGE_RETENTION_SECONDS
from .schemas import ChatMessage

logger = logging.getLogger(__name__)


class MessageHistory:
    """Append-only message log shared by every room.

    Entries are only ever removed by :meth:`prune_expired` and
    :meth:`drop_room`, both driven by the sweeper.
    """

    def __init__(self, retention_seconds: float = MESSAGE_RETENTION_SECONDS) -> None:
        self.retention_ms = int(retention_seconds * 1000)
        self._messages: List[ChatMessage] = []

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)

    def history_for(self, room_id: str, now: int) -> List[ChatMessage]:
        """Messages of *room_id* still inside the retention window, oldest first."""
        retained = [
            m for m in self._messages
            if m.roomId == room_id and now - m.sentAt <= self.retention_ms
        ]
        return sorted(retained, key=lambda m: m.sentAt)

    def prune_expired(self, now: int) -> int:
        """Remove messages older than the retention window; return how many went."""
        cutoff = now - self.retention_ms
        kept: List[ChatMessage] = []
        for message in self._messages:
            try:
                if message.sentAt >= cutoff:
                    kept.append(message)
            except Exception:
                logger.exception("Dropping unreadable history entry %r", message)
        removed = len(self._messages) - len(kept)
        self._messages = kept
        return removed

    def drop_room(self, room_id: str) -> None:
        self._messages = [m for m in self._messages if m.roomId != room_id]


__all__ = ["MessageHistory"]

from __future__ import annotations

from typing import Dict, List, Optional, Set

from .auth_utils import normalize, verify_digest
from .schemas import RoomSummary

# NOTE: ``Room`` only holds state and answers questions about it. All writes to
# members, reservations and expiry go through ``RoomRegistry``.


class Room:
    """Runtime state of a single chat room."""

    def __init__(
        self,
        room_id: str,
        capacity: int,
        password_digest: str,
        is_public: bool = True,
    ):
        self.room_id = room_id
        self.capacity = capacity
        self.is_public = is_public
        self.password_digest = password_digest
        # member_id -> display name
        self.members: Dict[str, str] = {}
        # digests of normalised display names holding a capacity slot
        self.reserved_identities: Set[str] = set()
        # epoch ms after which the (empty) room may be evicted
        self.expires_at: Optional[int] = None
        # member_id -> epoch ms deadline for members no connection has bound yet
        self.unclaimed: Dict[str, int] = {}

    # ---------------------------------------------------------------------
    # Helper utilities
    # ---------------------------------------------------------------------

    def check_password(self, normalized_password: str) -> bool:
        """Return *True* if *normalized_password* matches the room digest."""
        return verify_digest(normalized_password, self.password_digest)

    def has_reservation(self, identity_digest: str) -> bool:
        return identity_digest in self.reserved_identities

    def is_full(self) -> bool:
        """Every reservation slot has been handed out."""
        return len(self.reserved_identities) >= self.capacity

    def name_in_use(self, display_name: str) -> bool:
        wanted = normalize(display_name)
        return any(normalize(name) == wanted for name in self.members.values())

    def member_names(self) -> List[str]:
        return list(self.members.values())

    def is_empty(self) -> bool:
        return not self.members

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def remaining_ttl(self, now: int) -> Optional[int]:
        if self.expires_at is None:
            return None
        return max(0, self.expires_at - now)

    def summary(self, now: int) -> RoomSummary:
        return RoomSummary(
            id=self.room_id,
            memberCount=len(self.members),
            maxUsers=self.capacity,
            ttl=self.remaining_ttl(now),
        )

    def __repr__(self) -> str:
        return (
            f"Room({self.room_id!r}, members={len(self.members)}/{self.capacity}, "
            f"public={self.is_public}, expires_at={self.expires_at})"
        )

__all__ = ["Room"]

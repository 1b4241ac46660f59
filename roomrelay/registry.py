"""Room registry: the single owner of every live ``Room``.

All mutations are plain synchronous methods. Handlers run on one event loop,
so a join's capacity check and reservation write can never interleave with
another join on the same room.
"""
from __future__ import annotations

import logging
import random
import uuid
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

from .auth_utils import digest, normalize
from .constants import (
    MAX_CAPACITY,
    MEMBER_CLAIM_TIMEOUT_SECONDS,
    MIN_CAPACITY,
    MIN_PASSWORD_LENGTH,
    ROOM_ID_ALPHABET,
    ROOM_ID_SEGMENT_LENGTH,
    ROOM_ID_SEGMENTS,
    ROOM_IDLE_TTL_SECONDS,
)
from .errors import CapacityExceeded, InvalidCredential, NameTaken, NotFound, ValidationError
from .room import Room
from .schemas import RoomSummary

logger = logging.getLogger(__name__)


def generate_room_id() -> str:
    segments = (
        "".join(random.choices(ROOM_ID_ALPHABET, k=ROOM_ID_SEGMENT_LENGTH))
        for _ in range(ROOM_ID_SEGMENTS)
    )
    return "-".join(segments)


class RoomRegistry:
    """Owns the mapping of room id -> :class:`Room`."""

    def __init__(
        self,
        clock: Callable[[], int],
        idle_ttl_seconds: float = ROOM_IDLE_TTL_SECONDS,
        min_capacity: int = MIN_CAPACITY,
        max_capacity: int = MAX_CAPACITY,
        min_password_length: int = MIN_PASSWORD_LENGTH,
        claim_timeout_seconds: float = MEMBER_CLAIM_TIMEOUT_SECONDS,
        id_factory: Callable[[], str] = generate_room_id,
    ) -> None:
        self._clock = clock
        self.idle_ttl_ms = int(idle_ttl_seconds * 1000)
        self.min_capacity = min_capacity
        self.max_capacity = max_capacity
        self.min_password_length = min_password_length
        self.claim_ttl_ms = int(claim_timeout_seconds * 1000)
        self._id_factory = id_factory
        self._rooms: Dict[str, Room] = {}

    # -------------------- Lookup -------------------- #

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self._rooms.values()))

    def is_member(self, room_id: str, member_id: str) -> bool:
        room = self._rooms.get(room_id)
        return room is not None and member_id in room.members

    def display_name(self, room_id: str, member_id: str) -> Optional[str]:
        room = self._rooms.get(room_id)
        if room is None:
            return None
        return room.members.get(member_id)

    def member_names(self, room_id: str) -> List[str]:
        room = self._rooms.get(room_id)
        return room.member_names() if room else []

    # -------------------- Validation -------------------- #

    def _validate_credentials(self, display_name: Optional[str], raw_password: Optional[str]) -> Tuple[str, str]:
        """Return the trimmed display name and normalised password."""
        if not isinstance(display_name, str) or not display_name.strip():
            raise ValidationError("username required")
        if not isinstance(raw_password, str) or len(normalize(raw_password)) < self.min_password_length:
            raise ValidationError(f"password min {self.min_password_length} chars")
        return display_name.strip(), normalize(raw_password)

    def _validate_capacity(self, capacity: object) -> int:
        if isinstance(capacity, bool) or not isinstance(capacity, int):
            raise ValidationError(f"maxUsers {self.min_capacity}-{self.max_capacity}")
        if not self.min_capacity <= capacity <= self.max_capacity:
            raise ValidationError(f"maxUsers {self.min_capacity}-{self.max_capacity}")
        return capacity

    def _admit(self, room: Room, display_name: str) -> str:
        member_id = str(uuid.uuid4())
        room.members[member_id] = display_name
        if self.claim_ttl_ms > 0:
            room.unclaimed[member_id] = self._clock() + self.claim_ttl_ms
        return member_id

    def _fresh_room_id(self) -> str:
        room_id = self._id_factory()
        while room_id in self._rooms:
            room_id = self._id_factory()
        return room_id

    # -------------------- Lifecycle -------------------- #

    def create_room(
        self,
        creator_display_name: Optional[str],
        raw_password: Optional[str],
        is_public: bool,
        capacity: object,
    ) -> Tuple[str, str]:
        """Create a room seeded with its creator; return ``(room_id, member_id)``."""
        display_name, password = self._validate_credentials(creator_display_name, raw_password)
        cap = self._validate_capacity(capacity)

        room = Room(self._fresh_room_id(), cap, digest(password), is_public=is_public)
        member_id = self._admit(room, display_name)
        room.reserved_identities.add(digest(normalize(display_name)))
        self._rooms[room.room_id] = room

        logger.info(
            "Room %s created by %s (capacity=%d, public=%s)",
            room.room_id, display_name, cap, is_public,
        )
        return room.room_id, member_id

    def join_room(self, room_id: str, display_name: Optional[str], raw_password: Optional[str]) -> str:
        """Admit *display_name* into *room_id* and return the new member id.

        The identity reservation is checked before the name and password, so a
        full room answers 403 whatever the password. A reservation
        made here stays in place even if a later check fails.
        """
        room = self._rooms.get(room_id)
        if room is None:
            raise NotFound("room not found")

        name, password = self._validate_credentials(display_name, raw_password)

        identity = digest(normalize(name))
        if not room.has_reservation(identity):
            if room.is_full():
                logger.warning("Join rejected: room %s is full (%d seats)", room_id, room.capacity)
                raise CapacityExceeded("maximum number of users already joined")
            room.reserved_identities.add(identity)

        if room.name_in_use(name):
            logger.warning("Join rejected: name %r already taken in room %s", name, room_id)
            raise NameTaken("username already taken")

        if not room.check_password(password):
            logger.warning("Join rejected: invalid password for room %s", room_id)
            raise InvalidCredential("invalid password")

        member_id = self._admit(room, name)
        room.expires_at = None
        logger.info("%s joined room %s (%d/%d)", name, room_id, len(room.members), room.capacity)
        return member_id

    def leave_room(self, room_id: str, member_id: str) -> Optional[Room]:
        """Remove *member_id*; arm the idle timer once the room is empty.

        Returns the room when a member was actually removed, ``None`` otherwise.
        """
        room = self._rooms.get(room_id)
        if room is None:
            return None
        name = room.members.pop(member_id, None)
        if name is None:
            return None
        room.unclaimed.pop(member_id, None)

        logger.info("%s left room %s", name, room_id)
        if room.is_empty():
            room.expires_at = self._clock() + self.idle_ttl_ms
            logger.info("Room %s is empty, expires in %ds", room_id, self.idle_ttl_ms // 1000)
        return room

    def claim(self, room_id: str, member_id: str) -> None:
        """Mark *member_id* as held by a live connection."""
        room = self._rooms.get(room_id)
        if room is not None:
            room.unclaimed.pop(member_id, None)

    def release_unclaimed(self, now: Optional[int] = None) -> List[Room]:
        """Remove members whose connection never arrived in time.

        Each one leaves exactly as if its WebSocket had closed. Returns the
        rooms that lost a member.
        """
        now = self._clock() if now is None else now
        touched: List[Room] = []
        for room_id, room in list(self._rooms.items()):
            try:
                stale = [mid for mid, deadline in room.unclaimed.items() if deadline <= now]
                for member_id in stale:
                    logger.info("Member %s never connected to room %s", member_id, room_id)
                    self.leave_room(room_id, member_id)
                if stale:
                    touched.append(room)
            except Exception:
                logger.exception("Skipping room %s while releasing unclaimed members", room_id)
        return touched

    # -------------------- Directory & expiry -------------------- #

    def list_public_rooms(self, now: Optional[int] = None) -> List[RoomSummary]:
        now = self._clock() if now is None else now
        return [room.summary(now) for room in self._rooms.values() if room.is_public]

    def evict_expired(
        self,
        now: Optional[int] = None,
        on_evict: Optional[Callable[[Room], None]] = None,
    ) -> Set[str]:
        """Drop every room whose idle timer has elapsed.

        Returns the ids of the evicted rooms that were public. *on_evict* is
        called with each removed room. A room that cannot be handled is logged
        and skipped.
        """
        now = self._clock() if now is None else now
        evicted_public: Set[str] = set()
        for room_id, room in list(self._rooms.items()):
            try:
                if not room.is_expired(now):
                    continue
                del self._rooms[room_id]
                if room.is_public:
                    evicted_public.add(room_id)
                logger.info("Room %s evicted after idle timeout", room_id)
                if on_evict is not None:
                    on_evict(room)
            except Exception:
                logger.exception("Skipping room %s during eviction", room_id)
        return evicted_public


__all__ = ["RoomRegistry", "generate_room_id"]

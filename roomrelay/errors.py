"""Domain errors raised by the room registry.

Each error carries the HTTP status the REST layer reports it with, so the
routers can translate any of them with a single ``except RoomError``.
"""
from __future__ import annotations

from fastapi import status


class RoomError(Exception):
    """Base class for every recoverable room operation failure."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(RoomError):
    """Malformed client input: missing name, short password, bad capacity."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(RoomError):
    status_code = status.HTTP_404_NOT_FOUND


class CapacityExceeded(RoomError):
    status_code = status.HTTP_403_FORBIDDEN


class InvalidCredential(RoomError):
    status_code = status.HTTP_403_FORBIDDEN


class NameTaken(RoomError):
    status_code = status.HTTP_409_CONFLICT


__all__ = [
    "RoomError",
    "ValidationError",
    "NotFound",
    "CapacityExceeded",
    "InvalidCredential",
    "NameTaken",
]

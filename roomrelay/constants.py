# Defaults for room lifecycle; every value can be overridden from settings.
ROOM_IDLE_TTL_SECONDS = 10 * 60
MESSAGE_RETENTION_SECONDS = 5 * 60
SWEEP_INTERVAL_SECONDS = 60
HANDSHAKE_TIMEOUT_SECONDS = 30
MEMBER_CLAIM_TIMEOUT_SECONDS = 10 * 60

MIN_CAPACITY = 2
MAX_CAPACITY = 6
MIN_PASSWORD_LENGTH = 5

# Room ids look like ``K3F-9QA-Z0D``.
ROOM_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
ROOM_ID_SEGMENTS = 3
ROOM_ID_SEGMENT_LENGTH = 3

# WebSocket close code used when a handshake is rejected.
CLOSE_POLICY_VIOLATION = 1008
# Close code sent to a connection replaced by a newer one for the same member.
CLOSE_SUPERSEDED = 4003

__all__ = [
    "ROOM_IDLE_TTL_SECONDS",
    "MESSAGE_RETENTION_SECONDS",
    "SWEEP_INTERVAL_SECONDS",
    "HANDSHAKE_TIMEOUT_SECONDS",
    "MEMBER_CLAIM_TIMEOUT_SECONDS",
    "MIN_CAPACITY",
    "MAX_CAPACITY",
    "MIN_PASSWORD_LENGTH",
    "ROOM_ID_ALPHABET",
    "ROOM_ID_SEGMENTS",
    "ROOM_ID_SEGMENT_LENGTH",
    "CLOSE_POLICY_VIOLATION",
    "CLOSE_SUPERSEDED",
]

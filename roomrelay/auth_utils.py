from __future__ import annotations

from passlib.context import CryptContext

# -----------------------------
# Credential digest helpers
# -----------------------------

# Room passwords and name reservations are compared by digest equality, so the
# scheme has to be deterministic (no per-hash salt).
digest_context = CryptContext(schemes=["hex_sha256"])


def normalize(value: str) -> str:
    """Return *value* trimmed and case-folded so equivalent inputs compare equal."""
    return value.strip().casefold()


def digest(value: str) -> str:
    """Return the hex SHA-256 digest of the UTF-8 bytes of *value*.

    Callers are expected to pass the output of :func:`normalize`.
    """
    return digest_context.hash(value)


def verify_digest(value: str, hashed: str) -> bool:
    """Check *value* against a digest produced by :func:`digest`."""
    return digest_context.verify(value, hashed)


__all__ = [
    "digest_context",
    "normalize",
    "digest",
    "verify_digest",
]

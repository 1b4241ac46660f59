"""Relay configuration.

Settings come from an optional YAML file (``roomrelay.settings.yaml`` in the
working directory, or the path in ``ROOMRELAY_SETTINGS``). Everything has a
default, so a missing file just means stock behaviour. ``PORT`` in the
environment overrides ``server.port``.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, model_validator

from .constants import (
    HANDSHAKE_TIMEOUT_SECONDS,
    MAX_CAPACITY,
    MEMBER_CLAIM_TIMEOUT_SECONDS,
    MESSAGE_RETENTION_SECONDS,
    MIN_CAPACITY,
    MIN_PASSWORD_LENGTH,
    ROOM_IDLE_TTL_SECONDS,
    SWEEP_INTERVAL_SECONDS,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("roomrelay.settings.yaml")
SETTINGS_ENV_VAR = "ROOMRELAY_SETTINGS"


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host:            str           = "0.0.0.0"
    port:            int           = 3000
    static_dir:      Optional[str] = None
    allowed_origins: List[str]     = Field(default_factory=lambda: ["*"])


class RoomSettings(BaseModel):
    idle_ttl_seconds:          float = ROOM_IDLE_TTL_SECONDS
    min_capacity:              int   = MIN_CAPACITY
    max_capacity:              int   = MAX_CAPACITY
    min_password_length:       int   = MIN_PASSWORD_LENGTH
    # 0 waits for the handshake forever.
    handshake_timeout_seconds: float = HANDSHAKE_TIMEOUT_SECONDS
    # 0 keeps members that never open a WebSocket forever.
    claim_timeout_seconds:     float = MEMBER_CLAIM_TIMEOUT_SECONDS

    @model_validator(mode="after")
    def _check_capacity_bounds(self) -> "RoomSettings":
        if self.min_capacity > self.max_capacity:
            raise ValueError("rooms.min_capacity must not exceed rooms.max_capacity")
        return self


class MessageSettings(BaseModel):
    retention_seconds: float = MESSAGE_RETENTION_SECONDS


class SweeperSettings(BaseModel):
    interval_seconds: float = Field(default=SWEEP_INTERVAL_SECONDS, gt=0)


class LoggingSettings(BaseModel):
    level: str = "info"


class AppSettings(BaseModel):
    server:   ServerSettings  = Field(default_factory=ServerSettings)
    rooms:    RoomSettings    = Field(default_factory=RoomSettings)
    messages: MessageSettings = Field(default_factory=MessageSettings)
    sweeper:  SweeperSettings = Field(default_factory=SweeperSettings)
    logging:  LoggingSettings = Field(default_factory=LoggingSettings)


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_settings(path: Optional[Path] = None) -> AppSettings:
    """Load *path* (or the default settings file) into an *AppSettings* object."""
    if path is None:
        path = Path(os.environ.get(SETTINGS_ENV_VAR, SETTINGS_FILE))
    settings_data = _load_yaml(path)

    port = os.environ.get("PORT")
    if port:
        settings_data.setdefault("server", {})["port"] = int(port)

    app_settings = AppSettings(**settings_data)
    logger.info(
        "Settings loaded (server=%s:%s, idle_ttl=%ss, retention=%ss, sweep=%ss)",
        app_settings.server.host,
        app_settings.server.port,
        app_settings.rooms.idle_ttl_seconds,
        app_settings.messages.retention_seconds,
        app_settings.sweeper.interval_seconds,
    )
    return app_settings


__all__ = [
    "AppSettings",
    "ServerSettings",
    "RoomSettings",
    "MessageSettings",
    "SweeperSettings",
    "LoggingSettings",
    "load_settings",
]

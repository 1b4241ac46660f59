"""Parsing of inbound WebSocket frames into a closed set of variants.

Anything that is not valid JSON or does not match a known ``type`` becomes an
:class:`IgnoredFrame`; callers never dispatch on raw dictionaries.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError


class ConnectFrame(BaseModel):
    """Handshake binding the connection to a room member."""

    type: Literal["connect"]
    roomId: str
    memberId: str = Field(validation_alias=AliasChoices("memberId", "userId"))


class ChatFrame(BaseModel):
    type: Literal["message"]
    content: str = ""

    @field_validator("content", mode="before")
    @classmethod
    def _coerce_content(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        raise ValueError("content must be text")


@dataclass(frozen=True)
class IgnoredFrame:
    reason: str


InboundFrame = Annotated[Union[ConnectFrame, ChatFrame], Field(discriminator="type")]
Frame = Union[ConnectFrame, ChatFrame, IgnoredFrame]

_inbound_adapter: TypeAdapter = TypeAdapter(InboundFrame)


def parse_frame(raw: Union[str, bytes, None]) -> Frame:
    if raw is None:
        return IgnoredFrame("empty frame")
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return IgnoredFrame("invalid JSON")
    if not isinstance(data, dict):
        return IgnoredFrame("not an object")
    try:
        return _inbound_adapter.validate_python(data)
    except PydanticValidationError as exc:
        return IgnoredFrame(f"unrecognised frame: {exc.error_count()} error(s)")


__all__ = [
    "ConnectFrame",
    "ChatFrame",
    "IgnoredFrame",
    "Frame",
    "parse_frame",
]

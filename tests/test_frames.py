"""Tests for inbound WebSocket frame parsing."""
import pytest

from roomrelay.frames import ChatFrame, ConnectFrame, IgnoredFrame, parse_frame


def test_connect_frame():
    frame = parse_frame('{"type": "connect", "roomId": "AAA-BBB-CCC", "memberId": "m-1"}')
    assert isinstance(frame, ConnectFrame)
    assert (frame.roomId, frame.memberId) == ("AAA-BBB-CCC", "m-1")


def test_connect_frame_accepts_user_id_alias():
    frame = parse_frame('{"type": "connect", "roomId": "AAA-BBB-CCC", "userId": "m-1"}')
    assert isinstance(frame, ConnectFrame)
    assert frame.memberId == "m-1"


def test_chat_frame_from_bytes():
    frame = parse_frame(b'{"type": "message", "content": "hello"}')
    assert isinstance(frame, ChatFrame)
    assert frame.content == "hello"


@pytest.mark.parametrize(
    "content, expected",
    [(None, ""), (42, "42"), ("  spaced  ", "  spaced  ")],
)
def test_chat_content_coercion(content, expected):
    frame = ChatFrame(type="message", content=content)
    assert frame.content == expected


def test_chat_frame_without_content():
    frame = parse_frame('{"type": "message"}')
    assert isinstance(frame, ChatFrame)
    assert frame.content == ""


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "",
        None,
        "[1, 2, 3]",
        '"connect"',
        '{"type": "shout", "content": "hi"}',
        '{"content": "no type"}',
        '{"type": "connect", "roomId": "AAA-BBB-CCC"}',
        '{"type": "message", "content": {"a": 1}}',
        '{"type": "message", "content": ["hi"]}',
        '{"type": "message", "content": true}',
    ],
)
def test_unrecognised_frames_are_ignored(raw):
    assert isinstance(parse_frame(raw), IgnoredFrame)

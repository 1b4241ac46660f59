"""Shared test fixtures and configuration for relay tests."""
import pytest
from fastapi.testclient import TestClient
from fastapi.websockets import WebSocketState

from roomrelay.app import create_app
from roomrelay.config import AppSettings
from roomrelay.state import RelayState

ROOM_ID_PATTERN = r"^[A-Z0-9]{3}-[A-Z0-9]{3}-[A-Z0-9]{3}$"


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


class FakeWebSocket:
    """Just enough of a WebSocket for the broadcaster: records sent text."""

    def __init__(self, name: str = "peer", open_: bool = True, fail: bool = False):
        self.client = name
        self.sent = []
        self.fail = fail
        state = WebSocketState.CONNECTED if open_ else WebSocketState.DISCONNECTED
        self.client_state = state
        self.application_state = state

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(text)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return AppSettings()


@pytest.fixture
def relay(settings, clock):
    return RelayState(settings, clock=clock)


@pytest.fixture
def app(settings, clock):
    return create_app(settings, clock=clock)


@pytest.fixture
def client(app):
    """TestClient sharing one event loop between REST calls and WebSockets."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_room(client):
    """Create a room over REST and return the response body."""

    def _make_room(username="alice", password="secret", max_users=2, hidden=True):
        response = client.post(
            "/api/rooms",
            json={"username": username, "password": password, "hidden": hidden, "maxUsers": max_users},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make_room

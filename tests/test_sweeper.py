"""Tests for the periodic room and message sweeps."""
import asyncio
import json

import pytest

from roomrelay.broadcast import Binding
from roomrelay.schemas import ChatMessage
from roomrelay.sweeper import Sweeper
from tests.conftest import FakeWebSocket


def _empty_room(relay, public=True, name="alice"):
    room_id, member_id = relay.registry.create_room(name, "secret", public, 2)
    relay.registry.leave_room(room_id, member_id)
    return room_id


@pytest.mark.asyncio
async def test_sweep_evicts_public_room_and_refreshes_directory(relay, clock):
    room_id = _empty_room(relay)
    listener = FakeWebSocket("lobby")
    relay.broadcaster.register(listener)
    sweeper = Sweeper(relay)

    await sweeper.sweep_once()
    assert room_id in relay.registry
    assert listener.sent == []

    clock.advance(600)
    await sweeper.sweep_once()
    assert room_id not in relay.registry
    assert [json.loads(t) for t in listener.sent] == [{"type": "rooms.list", "rooms": []}]


@pytest.mark.asyncio
async def test_hidden_room_eviction_is_silent(relay, clock):
    room_id = _empty_room(relay, public=False)
    listener = FakeWebSocket("lobby")
    relay.broadcaster.register(listener)

    clock.advance(601)
    await Sweeper(relay).sweep_once()
    assert room_id not in relay.registry
    assert listener.sent == []


@pytest.mark.asyncio
async def test_sweep_prunes_messages_and_evicted_room_history(relay, clock):
    room_id = _empty_room(relay)
    other_id, _ = relay.registry.create_room("bob", "secret", False, 2)
    relay.history.append(ChatMessage(roomId=room_id, username="alice", content="a", sentAt=clock() - 1))
    relay.history.append(ChatMessage(roomId=other_id, username="bob", content="old", sentAt=clock()))

    clock.advance(299)
    relay.history.append(ChatMessage(roomId=other_id, username="bob", content="new", sentAt=clock()))
    await Sweeper(relay).sweep_once()
    assert len(relay.history) == 3

    clock.advance(301)
    await Sweeper(relay).sweep_once()
    assert [m.content for m in relay.history.history_for(other_id, clock())] == []
    assert len(relay.history) == 0


@pytest.mark.asyncio
async def test_background_task_runs_and_stops(relay, clock):
    room_id = _empty_room(relay)
    clock.advance(601)
    sweeper = Sweeper(relay, interval=0.01)

    sweeper.start()
    assert sweeper.running
    for _ in range(100):
        if room_id not in relay.registry:
            break
        await asyncio.sleep(0.01)
    await sweeper.stop()

    assert room_id not in relay.registry
    assert not sweeper.running


@pytest.mark.asyncio
async def test_background_task_survives_sweep_errors(relay, monkeypatch):
    sweeper = Sweeper(relay, interval=0.01)
    calls = []

    async def flaky(now=None):
        calls.append(now)
        raise RuntimeError("boom")

    monkeypatch.setattr(sweeper, "sweep_once", flaky)
    sweeper.start()
    for _ in range(100):
        if len(calls) >= 2:
            break
        await asyncio.sleep(0.01)
    assert sweeper.running
    await sweeper.stop()
    assert len(calls) >= 2


@pytest.mark.asyncio
async def test_sweep_releases_members_that_never_connected(relay, clock):
    room_id, alice_id = relay.registry.create_room("alice", "secret", True, 3)
    relay.registry.claim(room_id, alice_id)
    relay.registry.join_room(room_id, "bob", "secret")

    alice_ws = FakeWebSocket("alice")
    relay.broadcaster.register(alice_ws)
    relay.broadcaster.bind(alice_ws, Binding(room_id, alice_id))

    clock.advance(600)
    await Sweeper(relay).sweep_once()

    frames = [json.loads(t) for t in alice_ws.sent]
    assert frames[0] == {"type": "room.users", "users": ["alice"]}
    assert frames[1]["type"] == "rooms.list"
    assert frames[1]["rooms"][0]["memberCount"] == 1

"""Tests for the REST room endpoints."""
import re

import pytest

from tests.conftest import ROOM_ID_PATTERN


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_list_rooms_empty(client):
    response = client.get("/api/rooms")
    assert response.status_code == 200
    assert response.json() == []


def test_create_room(client):
    response = client.post(
        "/api/rooms", json={"username": "alice", "password": "secret", "maxUsers": 2}
    )
    assert response.status_code == 201
    body = response.json()
    assert re.match(ROOM_ID_PATTERN, body["roomId"])
    assert body["memberId"]


def test_public_rooms_are_listed(client, make_room):
    public = make_room(hidden=False, max_users=4)
    make_room(username="bob", hidden=True)

    rooms = client.get("/api/rooms").json()
    assert rooms == [{"id": public["roomId"], "memberCount": 1, "maxUsers": 4, "ttl": None}]


def test_max_users_accepts_numeric_string(client):
    response = client.post(
        "/api/rooms", json={"username": "alice", "password": "secret", "maxUsers": "3"}
    )
    assert response.status_code == 201


@pytest.mark.parametrize(
    "body",
    [
        {"password": "secret", "maxUsers": 2},
        {"username": "", "password": "secret", "maxUsers": 2},
        {"username": "alice", "password": "1234", "maxUsers": 2},
        {"username": "alice", "password": " 1234 ", "maxUsers": 2},
        {"username": "alice", "maxUsers": 2},
        {"username": "alice", "password": "secret"},
        {"username": "alice", "password": "secret", "maxUsers": 1},
        {"username": "alice", "password": "secret", "maxUsers": 7},
        {"username": "alice", "password": "secret", "maxUsers": "many"},
        {"username": "alice", "password": 123456, "maxUsers": 2},
    ],
)
def test_create_room_validation(client, body):
    response = client.post("/api/rooms", json=body)
    assert response.status_code == 400
    assert "detail" in response.json()


def test_join_room(client, make_room):
    room = make_room()
    response = client.post(
        f"/api/rooms/{room['roomId']}/join", json={"username": "bob", "password": "secret"}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["roomId"] == room["roomId"]
    assert body["memberId"] not in (None, room["memberId"])


def test_join_unknown_room(client):
    response = client.post("/api/rooms/NOP-NOP-NOP/join", json={"username": "bob", "password": "secret"})
    assert response.status_code == 404


def test_join_validation(client, make_room):
    room = make_room()
    response = client.post(f"/api/rooms/{room['roomId']}/join", json={"username": "bob", "password": "abc"})
    assert response.status_code == 400


def test_join_wrong_password(client, make_room):
    room = make_room(max_users=3)
    response = client.post(
        f"/api/rooms/{room['roomId']}/join", json={"username": "bob", "password": "wrong-password"}
    )
    assert response.status_code == 403


def test_join_name_taken(client, make_room):
    room = make_room(max_users=3)
    response = client.post(
        f"/api/rooms/{room['roomId']}/join", json={"username": "alice", "password": "secret"}
    )
    assert response.status_code == 409


def test_join_full_room(client, make_room):
    room = make_room(max_users=2)
    url = f"/api/rooms/{room['roomId']}/join"
    assert client.post(url, json={"username": "bob", "password": "secret"}).status_code == 200
    assert client.post(url, json={"username": "carol", "password": "secret"}).status_code == 403
    assert client.post(url, json={"username": "carol", "password": "wrong-password"}).status_code == 403


def test_public_listing_tracks_members(client, make_room):
    room = make_room(hidden=False, max_users=3)
    client.post(f"/api/rooms/{room['roomId']}/join", json={"username": "bob", "password": "secret"})
    assert client.get("/api/rooms").json()[0]["memberCount"] == 2

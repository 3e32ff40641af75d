import asyncio
import inspect
import json
from collections import defaultdict
from datetime import datetime
from unittest.mock import AsyncMock

import pytest
import socketio

from realtime import events
from conftest import emitted


def make_request(**overrides):
    doc = {
        "id": "6710f1d2a1b2c3d4e5f60718",
        "requester": "Al",
        "category": "Tea",
        "details": "",
        "location": "3F-212",
        "quantity": "",
        "teamId": "team-1",
        "spocId": "spoc-anita",
        "status": "pending",
        "createdAt": datetime(2026, 10, 18, 9, 30),
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def rooms(monkeypatch):
    enter_room = AsyncMock()
    leave_room = AsyncMock()
    monkeypatch.setattr(events.sio, "enter_room", enter_room)
    monkeypatch.setattr(events.sio, "leave_room", leave_room)
    return enter_room, leave_room


def test_room_names():
    assert events.team_room("team-1") == "team:team-1"
    assert events.spoc_room("spoc-anita") == "spoc:spoc-anita"


def test_team_room_only_gets_its_own_requests(emit):
    asyncio.run(events.broadcast_created(make_request(teamId="X")))
    asyncio.run(events.broadcast_created(make_request(teamId="Y")))

    for_team_x = [payload for event, payload, room in emitted(emit)
                  if event == "request:created:forTeam" and room == "team:X"]
    assert len(for_team_x) == 1
    assert for_team_x[0]["teamId"] == "X"


def test_created_payload_is_json_ready(emit):
    asyncio.run(events.broadcast_created(make_request()))

    _, payload, _ = emitted(emit)[0]
    assert payload["createdAt"] == "2026-10-18T09:30:00"


def test_updated_goes_to_scoped_rooms_under_same_name(emit):
    asyncio.run(events.broadcast_updated(make_request(spocId=None)))

    assert [(event, room) for event, _, room in emitted(emit)] == [
        ("request:updated", None),
        ("request:updated", "team:team-1"),
    ]


def test_deleted_payload_is_id_only(emit):
    asyncio.run(events.broadcast_deleted(make_request(teamId=None)))

    assert emitted(emit) == [
        ("request:deleted", {"id": "6710f1d2a1b2c3d4e5f60718"}, None),
        ("request:deleted", {"id": "6710f1d2a1b2c3d4e5f60718"}, "spoc:spoc-anita"),
    ]


def test_emit_failure_does_not_propagate(monkeypatch):
    failing_emit = AsyncMock(side_effect=RuntimeError("transport closed"))
    monkeypatch.setattr(events.sio, "emit", failing_emit)

    asyncio.run(events.broadcast_created(make_request()))
    assert failing_emit.await_count == 3


def test_join_and_leave_rooms(rooms):
    enter_room, leave_room = rooms

    assert asyncio.run(events.team_join("sid-1", "team-1")) is True
    assert asyncio.run(events.spoc_join("sid-1", "spoc-anita")) is True
    assert [c.args for c in enter_room.await_args_list] == [
        ("sid-1", "team:team-1"),
        ("sid-1", "spoc:spoc-anita"),
    ]

    assert asyncio.run(events.team_leave("sid-1", "team-1")) is True
    assert asyncio.run(events.spoc_leave("sid-1", "spoc-anita")) is True
    assert [c.args for c in leave_room.await_args_list] == [
        ("sid-1", "team:team-1"),
        ("sid-1", "spoc:spoc-anita"),
    ]


def test_join_ignores_invalid_ids(rooms):
    enter_room, leave_room = rooms

    for bad_id in (None, "", 42, {"id": "team-1"}):
        assert asyncio.run(events.team_join("sid-1", bad_id)) is False
        assert asyncio.run(events.spoc_leave("sid-1", bad_id)) is False

    enter_room.assert_not_awaited()
    leave_room.assert_not_awaited()


@pytest.fixture
def socket_server(monkeypatch):
    """Real room bookkeeping on the server, with the engine.io transport replaced by an outbox."""
    manager = socketio.AsyncManager()
    manager.set_server(events.sio)
    monkeypatch.setattr(events.sio, "manager", manager)

    outbox = defaultdict(list)

    async def send(eio_sid, data):
        # Socket.IO EVENT packets on the default namespace are "2" + JSON array
        outbox[eio_sid].append(tuple(json.loads(data[1:])))

    async def send_packet(eio_sid, pkt):
        await send(eio_sid, pkt.data)

    monkeypatch.setattr(events.sio.eio, "send", send)
    monkeypatch.setattr(events.sio.eio, "send_packet", send_packet, raising=False)
    return manager, outbox


async def connect_client(manager, eio_sid):
    sid = manager.connect(eio_sid, "/")
    if inspect.isawaitable(sid):
        sid = await sid
    return sid


def test_team_room_delivery_follows_membership(socket_server):
    manager, outbox = socket_server

    async def scenario():
        sid_x = await connect_client(manager, "eio-x")
        sid_y = await connect_client(manager, "eio-y")
        assert await events.team_join(sid_x, "X") is True
        assert await events.team_join(sid_y, "Y") is True

        await events.broadcast_created(make_request(id="req-x", teamId="X", spocId=None))
        await events.broadcast_created(make_request(id="req-y", teamId="Y", spocId=None))

        assert await events.team_leave(sid_x, "X") is True
        await events.broadcast_created(make_request(id="req-x2", teamId="X", spocId=None))

    asyncio.run(scenario())

    def team_deliveries(eio_sid):
        return [payload["id"] for event, payload in outbox[eio_sid]
                if event == "request:created:forTeam"]

    assert team_deliveries("eio-x") == ["req-x"]
    assert team_deliveries("eio-y") == ["req-y"]

    # Every connected client still sees the global event
    for eio_sid in ("eio-x", "eio-y"):
        assert [payload["id"] for event, payload in outbox[eio_sid]
                if event == "request:created"] == ["req-x", "req-y", "req-x2"]

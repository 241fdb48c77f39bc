import pytest
import socketio

from chat_backend.realtime.registry import RoomRegistry
from chat_backend.realtime.registry import room_for_chat

from .fakes import FakeServer


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def registry(server):
    return RoomRegistry(server)


def test_room_name():
    assert room_for_chat(12) == "chat_12"
    assert room_for_chat("12") == room_for_chat(12)


@pytest.mark.asyncio
async def test_join_records_both_directions(registry, server):
    await registry.join("s1", 7)
    await registry.join("s1", 8)

    assert registry.members(7) == frozenset({"s1"})
    assert registry.rooms_for("s1") == frozenset({"chat_7", "chat_8"})
    assert server.rooms["chat_7"] == {"s1"}


@pytest.mark.asyncio
async def test_join_is_idempotent(registry):
    await registry.join("s1", 7)
    await registry.join("s1", 7)
    assert registry.members(7) == frozenset({"s1"})


@pytest.mark.asyncio
async def test_leave_drops_empty_room(registry, server):
    await registry.join("s1", 7)
    await registry.join("s2", 7)

    await registry.leave("s1", 7)
    assert registry.members(7) == frozenset({"s2"})
    assert "s1" not in server.rooms["chat_7"]

    await registry.leave("s2", 7)
    assert registry.members(7) == frozenset()
    assert "chat_7" not in registry._rooms
    assert registry.rooms_for("s2") == frozenset()


@pytest.mark.asyncio
async def test_leave_unknown_is_a_noop(registry):
    await registry.leave("ghost", 99)
    assert registry.members(99) == frozenset()


@pytest.mark.asyncio
async def test_drop_connection_only_touches_its_rooms(registry):
    await registry.join("s1", 1)
    await registry.join("s1", 2)
    await registry.join("s2", 2)

    assert registry.drop_connection("s1") == frozenset({"chat_1", "chat_2"})
    assert registry.members(1) == frozenset()
    assert registry.members(2) == frozenset({"s2"})
    assert registry.rooms_for("s1") == frozenset()
    assert registry.drop_connection("s1") == frozenset()


@pytest.mark.asyncio
async def test_snapshots_are_detached(registry):
    await registry.join("s1", 3)
    snapshot = registry.members(3)
    await registry.join("s2", 3)
    assert snapshot == frozenset({"s1"})


@pytest.mark.asyncio
async def test_broadcast_reaches_room_only(registry, server):
    await registry.join("s1", 1)
    await registry.join("s2", 1)
    await registry.join("s3", 2)

    await registry.broadcast(1, "ping", {"n": 1})
    assert server.events_for("s1") == ["ping"]
    assert server.events_for("s2") == ["ping"]
    assert server.events_for("s3") == []


@pytest.mark.asyncio
async def test_broadcast_skip_sid(registry, server):
    await registry.join("s1", 1)
    await registry.join("s2", 1)

    await registry.broadcast(1, "ping", {}, skip_sid="s1")
    assert server.events_for("s1") == []
    assert server.events_for("s2") == ["ping"]
    assert server.emitted == [("ping", "chat_1", {}, "s1")]


def participants(sio, room):
    return {sid for sid, _ in sio.manager.get_participants("/", room)}


@pytest.mark.asyncio
async def test_registry_tracks_a_real_server():
    sio = socketio.AsyncServer(async_mode="asgi")
    registry = RoomRegistry(sio)
    a = await sio.manager.connect("eio-a", "/")
    b = await sio.manager.connect("eio-b", "/")
    c = await sio.manager.connect("eio-c", "/")

    await registry.join(a, 1)
    await registry.join(a, 1)
    await registry.join(b, 1)
    await registry.join(c, 1)
    assert participants(sio, "chat_1") == {a, b, c}
    assert registry.members(1) == frozenset({a, b, c})

    await registry.leave(b, 1)
    assert participants(sio, "chat_1") == {a, c}
    assert registry.members(1) == frozenset({a, c})

    await sio.manager.disconnect(c, "/")
    assert registry.drop_connection(c) == frozenset({"chat_1"})
    assert participants(sio, "chat_1") == {a}
    assert registry.members(1) == frozenset({a})

"""
Tests for the WebSocket Server

Tests for room selection from the request path, per-frame error handling
and connection lifecycle, plus one end-to-end exchange over a real socket.
"""

import asyncio
import json
from types import SimpleNamespace

import pytest
import websockets
from websockets.asyncio.client import connect

from roomchat import ChatServer, RoomRegistry, room_name_from_path

from conftest import MockTransport, StaticQuipProvider


class MockConnection:
    """Mock server connection yielding scripted frames."""

    def __init__(self, path, frames, error=None, hangup=None):
        self.request = SimpleNamespace(path=path)
        self.frames = list(frames)
        self.error = error
        self.hangup = hangup
        self.transport = MockTransport()
        self.send = self.transport.send

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for item in self.frames:
            yield item
        if self.hangup is not None:
            await self.hangup.wait()
        if self.error:
            raise self.error

    @property
    def payloads(self):
        return self.transport.payloads


class BlockingQuipProvider(StaticQuipProvider):
    """Quip provider that answers only once released."""

    def __init__(self):
        super().__init__("Late joke.")
        self.release = asyncio.Event()

    async def get_quip(self):
        self.calls += 1
        await self.release.wait()
        return self.joke


async def wait_until(predicate, timeout=5):
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout)


# Path handling


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/chat/kitchen", "kitchen"),
        ("/kitchen", "kitchen"),
        ("/chat/kitchen?x=1", "kitchen"),
        ("/chat/my%20room", "my room"),
        ("/", "lobby"),
        ("/chat", "lobby"),
        ("/chat/", "lobby"),
        ("", "lobby"),
    ],
)
def test_room_name_from_path(path, expected):
    """Test room name extraction from request paths."""
    assert room_name_from_path(path) == expected


def test_room_name_from_path_custom_default():
    """Test that a custom default room is used for bare paths."""
    assert room_name_from_path("/", default_room="hall") == "hall"


# Connection handling


@pytest.mark.asyncio
async def test_handle_client_runs_session_and_cleans_up():
    """Test that a connection joins, chats and leaves its room."""
    registry = RoomRegistry()
    server = ChatServer(registry, "localhost", 0)
    bob = MockConnection("/chat/den", [])
    bob_session = server.create_session(bob, bob.request.path)
    await bob_session.handle_message(json.dumps({"type": "join", "name": "bob"}))
    bob.transport.clear()

    hangup = asyncio.Event()
    alice = MockConnection(
        "/chat/den",
        [
            json.dumps({"type": "join", "name": "alice"}),
            json.dumps({"type": "chat", "text": "hi"}),
        ],
        hangup=hangup,
    )

    task = asyncio.create_task(server.handle_client(alice))
    await wait_until(lambda: len(bob.payloads) == 2)
    hangup.set()
    await asyncio.wait_for(task, timeout=5)

    den = registry.get("den")
    assert den.member_names() == ["bob"]
    assert bob.payloads == [
        {"type": "note", "text": 'alice joined "den".'},
        {"type": "chat", "name": "alice", "text": "hi"},
        {"type": "note", "text": "alice left den."},
    ]


@pytest.mark.asyncio
async def test_handle_client_processes_frames_in_order():
    """Test that frames queued together are handled in arrival order."""
    registry = RoomRegistry()
    server = ChatServer(registry, "localhost", 0)
    hangup = asyncio.Event()
    conn = MockConnection(
        "/lobby",
        [
            json.dumps({"type": "join", "name": "alice"}),
            json.dumps({"type": "name", "text": "name ally"}),
            json.dumps({"type": "members"}),
        ],
        hangup=hangup,
    )

    task = asyncio.create_task(server.handle_client(conn))
    await wait_until(lambda: len(conn.payloads) == 3)
    hangup.set()
    await asyncio.wait_for(task, timeout=5)

    assert conn.payloads == [
        {"type": "note", "text": 'alice joined "lobby".'},
        {"type": "note", "text": 'alice changed to "ally".'},
        {"type": "chat", "name": "Server", "text": "In room: ally"},
    ]


@pytest.mark.asyncio
async def test_handle_client_hangup_during_joke_leaves_room_at_once():
    """Test that closing while a joke is pending removes the session at once."""
    registry = RoomRegistry()
    provider = BlockingQuipProvider()
    server = ChatServer(registry, "localhost", 0, quip_provider=provider)
    bob = MockConnection("/chat/den", [])
    bob_session = server.create_session(bob, bob.request.path)
    await bob_session.handle_message(json.dumps({"type": "join", "name": "bob"}))
    bob.transport.clear()

    hangup = asyncio.Event()
    alice = MockConnection(
        "/chat/den",
        [
            json.dumps({"type": "join", "name": "alice"}),
            json.dumps({"type": "joke"}),
        ],
        hangup=hangup,
    )

    task = asyncio.create_task(server.handle_client(alice))
    await wait_until(lambda: provider.calls == 1)
    hangup.set()
    await asyncio.wait_for(task, timeout=5)

    assert not provider.release.is_set()
    assert registry.get("den").member_names() == ["bob"]
    assert bob.payloads[-1] == {"type": "note", "text": "alice left den."}
    assert all(p.get("text") != "Late joke." for p in alice.payloads)


@pytest.mark.asyncio
async def test_handle_client_closes_on_connection_error():
    """Test that a dropped connection still leaves the room."""
    registry = RoomRegistry()
    server = ChatServer(registry, "localhost", 0)
    conn = MockConnection(
        "/lobby",
        [json.dumps({"type": "join", "name": "alice"})],
        error=websockets.exceptions.ConnectionClosedError(None, None),
    )

    await server.handle_client(conn)

    assert len(registry.get("lobby")) == 0


@pytest.mark.asyncio
async def test_handle_client_closes_on_unexpected_error():
    """Test that an unexpected error still leaves the room."""
    registry = RoomRegistry()
    server = ChatServer(registry, "localhost", 0)
    conn = MockConnection(
        "/lobby",
        [json.dumps({"type": "join", "name": "alice"})],
        error=RuntimeError("boom"),
    )

    await server.handle_client(conn)

    assert len(registry.get("lobby")) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw, error_text",
    [
        ("{{", "Invalid JSON format"),
        (json.dumps({"type": "bogus"}), "bad message: bogus"),
        (json.dumps({"type": "chat", "text": "x"}), "Must join"),
    ],
)
async def test_process_message_answers_errors_with_note(raw, error_text):
    """Test that rejected frames are answered with an error note."""
    registry = RoomRegistry()
    server = ChatServer(registry, "localhost", 0)
    conn = MockConnection("/lobby", [])
    session = server.create_session(conn, conn.request.path)

    await server.process_message(session, raw)

    assert len(conn.payloads) == 1
    assert conn.payloads[0]["type"] == "note"
    assert error_text in conn.payloads[0]["text"]


@pytest.mark.asyncio
async def test_process_message_unexpected_error():
    """Test that unexpected failures are answered generically."""
    registry = RoomRegistry()
    server = ChatServer(registry, "localhost", 0)
    conn = MockConnection("/lobby", [])
    session = server.create_session(conn, conn.request.path)

    async def explode(raw):
        raise KeyError("oops")

    session.handle_message = explode

    await server.process_message(session, "{}")

    assert conn.payloads == [{"type": "note", "text": "Error: Internal server error"}]


# End to end


@pytest.mark.asyncio
async def test_end_to_end_chat_over_websocket():
    """Test a full exchange over a real WebSocket connection."""
    registry = RoomRegistry()
    server = ChatServer(
        registry, "127.0.0.1", 0, quip_provider=StaticQuipProvider("Knock knock.")
    )
    await server.start()
    port = list(server.server.sockets)[0].getsockname()[1]

    try:
        async with connect(f"ws://127.0.0.1:{port}/chat/attic") as alice:
            await alice.send(json.dumps({"type": "join", "name": "alice"}))
            assert json.loads(await alice.recv()) == {
                "type": "note",
                "text": 'alice joined "attic".',
            }

            async with connect(f"ws://127.0.0.1:{port}/chat/attic") as bob:
                await bob.send(json.dumps({"type": "join", "name": "bob"}))
                await bob.recv()
                await alice.recv()

                await bob.send(json.dumps({"type": "joke"}))
                assert json.loads(await bob.recv()) == {
                    "type": "chat",
                    "name": "Server",
                    "text": "Knock knock.",
                }

                await alice.send(json.dumps({"type": "priv", "text": "priv bob psst"}))
                assert json.loads(await bob.recv())["name"] == "PM from alice"
                assert json.loads(await alice.recv())["name"] == "You send PM to bob"

            note = json.loads(await asyncio.wait_for(alice.recv(), timeout=5))
            assert note == {"type": "note", "text": "bob left attic."}
            assert registry.get("attic").member_names() == ["alice"]
    finally:
        await server.stop()


@pytest.mark.asyncio
async def test_socket_closed_during_joke_leaves_room_over_websocket():
    """Test that a client hanging up mid-joke is dropped from the listing."""
    registry = RoomRegistry()
    provider = BlockingQuipProvider()
    server = ChatServer(registry, "127.0.0.1", 0, quip_provider=provider)
    await server.start()
    port = list(server.server.sockets)[0].getsockname()[1]
    url = f"ws://127.0.0.1:{port}/chat/attic"

    try:
        async with connect(url) as bob:
            await bob.send(json.dumps({"type": "join", "name": "bob"}))
            await bob.recv()

            async with connect(url) as alice:
                await alice.send(json.dumps({"type": "join", "name": "alice"}))
                await alice.recv()
                await bob.recv()

                await alice.send(json.dumps({"type": "joke"}))
                await wait_until(lambda: provider.calls == 1)

            note = json.loads(await asyncio.wait_for(bob.recv(), timeout=5))
            assert note == {"type": "note", "text": "alice left attic."}

            await bob.send(json.dumps({"type": "members"}))
            listing = json.loads(await asyncio.wait_for(bob.recv(), timeout=5))
            assert listing == {
                "type": "chat",
                "name": "Server",
                "text": "In room: bob",
            }
    finally:
        provider.release.set()
        await server.stop()

import json

import pytest

from roomchat import ChatSession, RoomRegistry


class MockTransport:
    """Mock connection send capability that records frames."""

    def __init__(self, fail=False):
        self.sent_messages = []
        self.fail = fail

    async def send(self, message):
        if self.fail:
            raise ConnectionError("socket closed")
        self.sent_messages.append(message)

    @property
    def payloads(self):
        return [json.loads(m) for m in self.sent_messages]

    def clear(self):
        self.sent_messages.clear()


class StaticQuipProvider:
    """Quip provider returning a fixed joke."""

    def __init__(self, joke="I used to be a banker, but I lost interest."):
        self.joke = joke
        self.calls = 0

    async def get_quip(self):
        self.calls += 1
        return self.joke

    async def close(self):
        pass


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def lobby(registry):
    return registry.get("lobby")


@pytest.fixture
def make_session(lobby):
    """Factory creating a session (and its transport) in the lobby."""

    def _make(room=None, fail=False, quip_provider=None):
        transport = MockTransport(fail=fail)
        session = ChatSession(
            transport.send, room if room is not None else lobby, quip_provider
        )
        return session, transport

    return _make


@pytest.fixture
def join(make_session):
    """Factory creating a session that has already joined as `name`."""

    async def _join(name, room=None, fail=False, quip_provider=None):
        session, transport = make_session(room, fail, quip_provider)
        await session.handle_message(json.dumps({"type": "join", "name": name}))
        return session, transport

    return _join

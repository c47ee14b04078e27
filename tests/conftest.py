import json
import logging

import pytest
from websockets.protocol import State

from meetrelay.handlers.meeting_handler import MeetingHandler
from meetrelay.handlers.room_handler import RoomHandler
from meetrelay.handlers.signaling_handler import SignalingHandler
from meetrelay.services.endpoint import Endpoint
from meetrelay.services.registry import SessionRegistry


class FakeProtocol:
    """Records frames written by websockets' broadcast()."""

    def __init__(self):
        self.state = State.OPEN
        self.frames = []

    def send_text(self, data):
        self.frames.append(json.loads(data))


class FakeTransport:
    def __init__(self):
        self.backlog = 0

    def get_write_buffer_size(self):
        return self.backlog


class FakeWebSocket:
    """In-memory stand-in for a server connection that records outbound frames."""

    def __init__(self, remote_address=("127.0.0.1", 50000)):
        self.protocol = FakeProtocol()
        self.transport = FakeTransport()
        self.logger = logging.getLogger("tests.fake_websocket")
        self.send_in_progress = None
        self.fragmented_send_waiter = None
        self.closed = False
        self.remote_address = remote_address

    @property
    def state(self):
        return self.protocol.state

    @state.setter
    def state(self, value):
        self.protocol.state = value

    @property
    def sent(self):
        return self.protocol.frames

    def send_data(self):
        pass

    async def close(self, code=1000, reason=""):
        self.state = State.CLOSED
        self.closed = True

    def of_type(self, msg_type):
        return [m for m in self.sent if m["type"] == msg_type]


@pytest.fixture
def sessions():
    return SessionRegistry()


@pytest.fixture
def handlers(sessions):
    """Handler instances bound to an isolated registry."""
    return {
        "meeting": MeetingHandler(sessions),
        "signaling": SignalingHandler(sessions),
        "room": RoomHandler(sessions),
    }


@pytest.fixture
def make_endpoint():
    def _make():
        return Endpoint(FakeWebSocket())
    return _make


@pytest.fixture
def meeting(handlers, make_endpoint):
    """A meeting with a host and two guests; returns (code, host, guest_a, guest_b)."""
    async def _build(names=("Alice", "Bob")):
        host = make_endpoint()
        await handlers["meeting"].handle_create_meeting(host, {"type": "create_meeting", "name": "Hana"})
        code = host.meeting_id
        guests = []
        for name in names:
            guest = make_endpoint()
            await handlers["meeting"].handle_join_meeting(
                guest, {"type": "join_meeting", "meetingId": code, "name": name})
            guests.append(guest)
        for ep in [host, *guests]:
            ep.websocket.sent.clear()
        return (code, host, *guests)
    return _build

import json

import pytest

from meetrelay.handlers.connection import ConnectionHandler, HANDLERS, parse_envelope
from meetrelay.services.errors import MalformedEnvelope
from meetrelay.services.rate_limiter import RateLimiter

from conftest import FakeWebSocket


class ScriptedWebSocket(FakeWebSocket):
    """Fake connection that yields a fixed list of inbound frames, then ends."""

    def __init__(self, frames):
        super().__init__()
        self.frames = list(frames)
        self.close_code = None

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for frame in self.frames:
            if self.closed:
                return
            yield frame

    async def close(self, code=1000, reason=""):
        self.close_code = code
        await super().close(code, reason)


def test_parse_envelope_accepts_objects_with_type():
    assert parse_envelope('{"type": "chat_message", "message": "x"}') == {
        "type": "chat_message", "message": "x"}
    assert parse_envelope(b'{"type": "create_meeting"}') == {"type": "create_meeting"}


@pytest.mark.parametrize("raw", [
    "not json",
    "[1, 2]",
    '"create_meeting"',
    "{}",
    '{"type": 5}',
    '{"name": "no type"}',
])
def test_parse_envelope_rejects_malformed(raw):
    with pytest.raises(MalformedEnvelope):
        parse_envelope(raw)


def test_handler_table_covers_protocol():
    assert set(HANDLERS) == {
        "create_meeting", "join_meeting", "webrtc_offer", "webrtc_answer",
        "ice_candidate", "chat_message", "participant_update",
    }


@pytest.mark.asyncio
async def test_malformed_and_unknown_frames_are_dropped_and_loop_continues(sessions):
    ws = ScriptedWebSocket([
        "garbage{",
        json.dumps({"no": "type"}),
        json.dumps({"type": "self_destruct"}),
        json.dumps({"type": "create_meeting", "name": "Hana"}),
    ])
    conn = ConnectionHandler(rate_limiter=RateLimiter(), sessions=sessions)

    await conn.handle_connection(ws)

    assert [m["type"] for m in ws.sent] == ["meeting_created"]
    assert not ws.closed


@pytest.mark.asyncio
async def test_handler_failure_does_not_end_loop(sessions):
    calls = []

    async def broken(endpoint, data):
        calls.append("broken")
        raise RuntimeError("boom")

    async def fine(endpoint, data):
        calls.append("fine")

    ws = ScriptedWebSocket([json.dumps({"type": "a"}), json.dumps({"type": "b"})])
    conn = ConnectionHandler(handlers={"a": broken, "b": fine},
                             rate_limiter=RateLimiter(), sessions=sessions)

    await conn.handle_connection(ws)

    assert calls == ["broken", "fine"]


@pytest.mark.asyncio
async def test_rate_limited_connection_is_closed(sessions):
    frames = [json.dumps({"type": "participant_update"})] * 5
    ws = ScriptedWebSocket(frames)
    conn = ConnectionHandler(rate_limiter=RateLimiter(max_per_window=2), sessions=sessions)

    await conn.handle_connection(ws)

    assert ws.closed
    assert ws.close_code == 4008


@pytest.mark.asyncio
async def test_closing_connection_runs_lifecycle_cleanup(sessions):
    limiter = RateLimiter()
    host_ws = ScriptedWebSocket([json.dumps({"type": "create_meeting"})])
    host = ConnectionHandler(rate_limiter=limiter, sessions=sessions)

    await host.handle_connection(host_ws)

    code = host_ws.sent[0]["meetingId"]
    assert not sessions.exists(code)
    assert host.endpoint.participant_id not in limiter._wins

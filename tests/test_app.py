import asyncio
import json
from urllib.request import urlopen

import pytest
from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed

from meetrelay.app import build_ssl_context, create_server
from meetrelay.services.state import registry


async def recv_json(ws, timeout=5):
    return json.loads(await asyncio.wait_for(ws.recv(), timeout))


async def http_status(port, code):
    def _get():
        with urlopen(f"http://127.0.0.1:{port}/api/meeting/{code}", timeout=5) as resp:
            return resp.headers.get("Content-Type"), json.loads(resp.read())
    return await asyncio.to_thread(_get)


def test_ssl_context_requires_both_files(monkeypatch):
    monkeypatch.delenv("SSL_CERT_FILE", raising=False)
    monkeypatch.delenv("SSL_KEY_FILE", raising=False)
    assert build_ssl_context() is None
    assert build_ssl_context(cert_file="cert.pem") is None


@pytest.mark.asyncio
async def test_meeting_flow_end_to_end():
    async with create_server("127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        uri = f"ws://127.0.0.1:{port}"

        async with connect(uri) as host, connect(uri) as guest:
            await host.send(json.dumps({"type": "create_meeting", "name": "Hana"}))
            created = await recv_json(host)
            code = created["meetingId"]
            assert created["type"] == "meeting_created"

            content_type, status = await http_status(port, code)
            assert content_type == "application/json"
            assert status == {"exists": True, "isActive": True}

            await guest.send(json.dumps({"type": "join_meeting", "meetingId": code, "name": "Alice"}))
            joined = await recv_json(guest)
            assert joined["participants"] == [{"id": created["participantId"], "name": "Hana"}]
            announced = await recv_json(host)
            assert announced == {
                "type": "participant_joined",
                "participantId": joined["participantId"],
                "participantName": "Alice",
            }

            await guest.send(json.dumps({
                "type": "webrtc_offer", "target": created["participantId"], "offer": {"sdp": "v=0"}}))
            assert await recv_json(host) == {
                "type": "webrtc_offer", "sender": joined["participantId"], "offer": {"sdp": "v=0"}}

            await host.send("not json")
            await host.send(json.dumps({"type": "chat_message", "message": "welcome"}))
            chat = await recv_json(guest)
            assert chat["message"] == "welcome" and chat["senderName"] == "Hana"

            await host.close()
            left = await recv_json(guest)
            assert left["type"] == "participant_left"
            with pytest.raises(ConnectionClosed):
                await asyncio.wait_for(guest.recv(), 5)

        _, status = await http_status(port, code)
        assert status == {"exists": False, "isActive": False}
        assert not registry.exists(code)


@pytest.mark.asyncio
async def test_join_unknown_meeting_end_to_end():
    async with create_server("127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        async with connect(f"ws://127.0.0.1:{port}") as guest:
            await guest.send(json.dumps({"type": "join_meeting", "meetingId": "ZZZ-ZZZ-ZZZ"}))
            assert await recv_json(guest) == {"type": "error", "message": "Meeting not found"}


@pytest.mark.asyncio
async def test_non_reading_peer_does_not_stall_the_meeting():
    chat_body = "x" * (512 * 1024)
    rounds = 60

    async with create_server("127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        uri = f"ws://127.0.0.1:{port}"

        async with connect(uri) as host, \
                connect(uri, max_queue=1, close_timeout=1) as stalled, \
                connect(uri) as guest:
            await host.send(json.dumps({"type": "create_meeting", "name": "Hana"}))
            code = (await recv_json(host))["meetingId"]

            # This peer joins and then never reads again
            await stalled.send(json.dumps({"type": "join_meeting", "meetingId": code, "name": "Idle"}))
            await recv_json(stalled)
            await guest.send(json.dumps({"type": "join_meeting", "meetingId": code, "name": "Alice"}))
            await recv_json(guest)

            received = 0
            for n in range(rounds):
                await host.send(json.dumps({"type": "chat_message", "message": f"{n}:{chat_body}"}))
                chat = await recv_json(guest)
                assert chat["type"] == "chat_message"
                assert chat["message"].startswith(f"{n}:")
                received += 1

            assert received == rounds
            assert registry.exists(code)

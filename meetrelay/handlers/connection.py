# handlers/connection.py

import json
import logging

from websockets.exceptions import ConnectionClosed

# Local handlers
from meetrelay.handlers.disconnection import handle_disconnection
from meetrelay.handlers.meeting_handler import MeetingHandler
from meetrelay.handlers.room_handler import RoomHandler
from meetrelay.handlers.signaling_handler import SignalingHandler

from meetrelay.services.endpoint import Endpoint
from meetrelay.services.errors import MalformedEnvelope
from meetrelay.services.rate_limiter import RateLimiter

from meetrelay.constants import RATE_LIMIT_CLOSE_CODE

# -----------------------------------------------------------------------------
# Configuration and Global Instances
# -----------------------------------------------------------------------------
logger = logging.getLogger(__name__)

RATE_LIMITER = RateLimiter()

# Instantiate handler classes
meeting_handler = MeetingHandler()
signaling_handler = SignalingHandler()
room_handler = RoomHandler()

# Mapping of message types to handler functions
HANDLERS = {
    "create_meeting":     meeting_handler.handle_create_meeting,
    "join_meeting":       meeting_handler.handle_join_meeting,
    "webrtc_offer":       signaling_handler.handle_offer,
    "webrtc_answer":      signaling_handler.handle_answer,
    "ice_candidate":      signaling_handler.handle_ice_candidate,
    "chat_message":       room_handler.handle_chat_message,
    "participant_update": room_handler.handle_participant_update,
}


def parse_envelope(raw) -> dict:
    """
    Parse one inbound frame into an envelope.

    Parameters:
        raw (str | bytes): Frame received over the WebSocket.

    Returns:
        dict: The decoded JSON object.

    Raises:
        MalformedEnvelope: If the frame is not JSON, not an object, or has no string ``type``.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedEnvelope(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedEnvelope(f"Expected a JSON object, got {type(data).__name__}")
    if not isinstance(data.get("type"), str):
        raise MalformedEnvelope("Missing message type")
    return data


class ConnectionHandler:
    """
    Manages a single WebSocket connection: receive loop, rate limiting,
    parse/dispatch to the message handlers, and cleanup on close.
    """

    def __init__(self, handlers=None, rate_limiter=None, sessions=None):
        """
        Parameters:
            handlers (dict, optional): Message type -> handler coroutine. Defaults to HANDLERS.
            rate_limiter (RateLimiter, optional): Inbound limiter. Defaults to RATE_LIMITER.
            sessions (SessionRegistry, optional): Registry used on disconnect.
        """
        self.handlers = handlers if handlers is not None else HANDLERS
        self.rate_limiter = rate_limiter if rate_limiter is not None else RATE_LIMITER
        self.sessions = sessions
        self.endpoint = None

    async def handle_connection(self, ws):
        """
        Main entry point for a new WebSocket connection.

        Runs until the client disconnects, then removes the participant from
        its meeting. Malformed frames and handler failures are logged and the
        loop carries on with the next frame.

        Parameters:
            ws: The WebSocket connection instance.

        Returns:
            None
        """
        self.endpoint = Endpoint(ws)
        pid = self.endpoint.participant_id
        logger.info(f"New connection {pid} from {ws.remote_address}")

        try:
            async for raw in ws:
                if not self.rate_limiter.allow(pid):
                    logger.warning(f"Rate limit exceeded by {pid}")
                    await ws.close(code=RATE_LIMIT_CLOSE_CODE, reason="Rate limit exceeded")
                    break

                try:
                    data = parse_envelope(raw)
                except MalformedEnvelope as e:
                    logger.warning(f"Dropping malformed message from {pid}: {e}")
                    continue

                try:
                    await self._dispatch(data)
                except Exception as e:
                    logger.error(f"Handler error for {data['type']} from {pid}", exc_info=e)
        except ConnectionClosed:
            logger.info(f"Connection {pid} closed by client")
        finally:
            await self._cleanup()

    async def _dispatch(self, data):
        """
        Dispatch a parsed envelope to the handler registered for its type.

        Unknown types are logged and dropped; the sender gets no reply.

        Parameters:
            data (dict): The parsed envelope.

        Returns:
            result: The return value of the handler coroutine, if any.
        """
        msg_type = data["type"]
        handler = self.handlers.get(msg_type)
        if handler:
            return await handler(self.endpoint, data)

        logger.warning(f"Unknown message type: {msg_type}")

    async def _cleanup(self):
        """
        Remove the participant from its meeting and clear rate limiter state.

        Returns:
            None
        """
        await handle_disconnection(self.endpoint, self.sessions)
        self.rate_limiter.forget(self.endpoint.participant_id)
        logger.info(f"Connection {self.endpoint.participant_id} cleaned up")


async def handle_connection(ws):
    """Server entry point: one ConnectionHandler per connection."""
    await ConnectionHandler().handle_connection(ws)

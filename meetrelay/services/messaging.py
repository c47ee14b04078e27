# services/messaging.py
"""
Outbound envelope helpers.

Every message the server emits is a flat JSON object whose ``type`` field
names the event. Delivery is best-effort and never waits on the recipient:
frames are written with websockets' ``broadcast``, which does not apply flow
control. A connection that is not open, or whose unsent backlog exceeds
SEND_BACKLOG_LIMIT, is skipped. Nothing is queued or retried.
"""
import json
import logging
from datetime import datetime, timezone

from websockets.asyncio import server as ws_server
from websockets.protocol import State

from meetrelay.constants import SEND_BACKLOG_LIMIT

logger = logging.getLogger(__name__)


def is_writable(websocket) -> bool:
    """
    Check whether a connection can take another frame right now.

    Args:
        websocket: WebSocket connection.

    Returns:
        bool: True while the connection is OPEN and its write buffer is not backlogged.
    """
    if websocket is None or websocket.state is not State.OPEN:
        return False
    return websocket.transport.get_write_buffer_size() <= SEND_BACKLOG_LIMIT


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_message(msg_type, payload=None) -> dict:
    """
    Build an outbound envelope.

    The payload is merged first so that the server-assigned ``type`` always
    wins over a same-named payload key.

    Args:
        msg_type (str): Outbound message type.
        payload (dict, optional): Fields to place beside ``type``.

    Returns:
        dict: The envelope.
    """
    message = dict(payload) if payload else {}
    message["type"] = msg_type
    return message


def _write(connections, msg_type, frame) -> int:
    """Write one serialized frame to every writable connection without draining."""
    ready = [ws for ws in connections if is_writable(ws)]
    skipped = len(connections) - len(ready)
    if skipped:
        logger.debug(f"Skipping {msg_type} for {skipped} connection(s) not open or backlogged")
    if not ready:
        return 0

    try:
        ws_server.broadcast(ready, frame, raise_exceptions=True)
    except Exception as e:
        logger.debug(f"Some {msg_type} frames could not be written: {e!r}")
    return len(ready)


def send_message(websocket, msg_type, payload=None) -> bool:
    """
    Serialize and send one envelope to a single connection.

    Args:
        websocket: Target WebSocket connection.
        msg_type (str): Outbound message type.
        payload (dict, optional): Envelope fields.

    Returns:
        bool: True if the frame was handed to the connection.
    """
    frame = json.dumps(build_message(msg_type, payload))
    return _write([websocket], msg_type, frame) == 1


def send_error_message(websocket, error_message) -> bool:
    """
    Send an ``error`` envelope.

    Args:
        websocket: Target WebSocket connection.
        error_message (str): Human-readable description.

    Returns:
        bool: True if the frame was handed to the connection.
    """
    return send_message(websocket, "error", {"message": error_message})


def broadcast(participants, msg_type, payload=None) -> int:
    """
    Send the same envelope to several participants.

    The envelope is serialized once. A slow or stalled recipient never delays
    the others.

    Args:
        participants (list[Participant]): Recipients.
        msg_type (str): Outbound message type.
        payload (dict, optional): Envelope fields.

    Returns:
        int: Number of recipients the frame was handed to.
    """
    frame = json.dumps(build_message(msg_type, payload))
    return _write([p.websocket for p in participants], msg_type, frame)

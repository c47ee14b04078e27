# handlers/signaling_handler.py
import json
import logging

from meetrelay.services.messaging import send_message
from meetrelay.services.state import registry

logger = logging.getLogger(__name__)


class SignalingHandler:
    """
    Relays point-to-point WebRTC handshake messages between participants of one meeting.

    Payloads are forwarded untouched; only the envelope is rewritten so the
    recipient learns who sent it. Unroutable messages are dropped silently.
    """

    def __init__(self, sessions=None):
        self.sessions = sessions if sessions is not None else registry

    async def _relay(self, endpoint, data, msg_type, field):
        """
        Forward `field` of `data` to the participant named in ``data['target']``.

        Args:
            endpoint (Endpoint): Sender's connection identity.
            data (dict): Parsed message containing 'target' and `field`.
            msg_type (str): Outbound message type.
            field (str): Name of the opaque payload field.

        Returns:
            bool: True if the message was handed to the target's connection.
        """
        session = self.sessions.get(endpoint.meeting_id)
        if session is None:
            return False

        target = data.get("target")
        recipient = session.participants.get(target) if isinstance(target, str) else None
        if recipient is None:
            logger.debug(f"Dropping {msg_type} from {endpoint.participant_id}: "
                         f"target {target!r} not in meeting {endpoint.meeting_id}")
            return False

        delivered = send_message(recipient.websocket, msg_type, {
            "sender": endpoint.participant_id,
            field: data.get(field),
        })
        if delivered and logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"{msg_type} relayed from {endpoint.participant_id} to {target} "
                         f"{field}={json.dumps(data.get(field))}")
        return delivered

    async def handle_offer(self, endpoint, data):
        """Relay an SDP offer to its target."""
        await self._relay(endpoint, data, "webrtc_offer", "offer")

    async def handle_answer(self, endpoint, data):
        """Relay an SDP answer to its target."""
        await self._relay(endpoint, data, "webrtc_answer", "answer")

    async def handle_ice_candidate(self, endpoint, data):
        """Relay an ICE candidate to its target."""
        await self._relay(endpoint, data, "ice_candidate", "candidate")

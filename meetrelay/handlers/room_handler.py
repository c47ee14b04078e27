# handlers/room_handler.py
import logging

from meetrelay.services.messaging import broadcast, utc_timestamp
from meetrelay.services.state import registry

logger = logging.getLogger(__name__)


class RoomHandler:
    """
    Broadcasts informational messages (chat, participant status) to the rest of a meeting.
    """

    def __init__(self, sessions=None):
        self.sessions = sessions if sessions is not None else registry

    async def handle_chat_message(self, endpoint, data):
        """
        Send a chat message to every other participant in the sender's meeting.

        Args:
            endpoint (Endpoint): Sender's connection identity.
            data (dict): Parsed message containing 'message'.

        Returns:
            None
        """
        session = self.sessions.get(endpoint.meeting_id)
        if session is None:
            return

        payload = {
            "sender": endpoint.participant_id,
            "senderName": endpoint.name,
            "timestamp": utc_timestamp(),
        }
        if "message" in data:
            payload["message"] = data["message"]

        delivered = broadcast(session.others(endpoint.participant_id), "chat_message", payload)
        logger.debug(f"Chat from {endpoint.participant_id} delivered to {delivered} participant(s) "
                     f"message={data.get('message')}")

    async def handle_participant_update(self, endpoint, data):
        """
        Forward a status update (mute, camera, hand raised, ...) to every other participant.

        The inbound fields are passed through as-is; ``participantId`` is always
        set to the sender so it cannot be spoofed.

        Args:
            endpoint (Endpoint): Sender's connection identity.
            data (dict): Parsed message with arbitrary fields.

        Returns:
            None
        """
        session = self.sessions.get(endpoint.meeting_id)
        if session is None:
            return

        payload = dict(data)
        payload["participantId"] = endpoint.participant_id
        broadcast(session.others(endpoint.participant_id), "participant_update", payload)

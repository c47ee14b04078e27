# handlers/meeting_handler.py
import logging

from meetrelay.constants import (
    ALREADY_IN_MEETING_MESSAGE, DEFAULT_GUEST_NAME,
    DEFAULT_HOST_NAME, MEETING_NOT_FOUND_MESSAGE
)
from meetrelay.services.errors import AlreadyInMeeting, MeetingNotFound
from meetrelay.services.identifiers import is_meeting_code
from meetrelay.services.messaging import broadcast, send_error_message, send_message
from meetrelay.services.state import registry

logger = logging.getLogger(__name__)


def resolve_name(value, default: str) -> str:
    """
    Pick the display name to use for a participant.

    Args:
        value: The ``name`` field of the inbound message, if any.
        default (str): Name used when `value` is absent, empty or not a string.

    Returns:
        str: `value` verbatim if it is a non-empty string, else `default`.
    """
    if isinstance(value, str) and value:
        return value
    return default


class MeetingHandler:
    """
    Handles meeting creation and joining.
    """

    def __init__(self, sessions=None):
        self.sessions = sessions if sessions is not None else registry

    def _ensure_unbound(self, endpoint):
        if endpoint.bound:
            raise AlreadyInMeeting(endpoint.meeting_id)

    async def handle_create_meeting(self, endpoint, data):
        """
        Create a meeting with the sender as host.

        Args:
            endpoint (Endpoint): Sender's connection identity.
            data (dict): Parsed message, optionally containing 'name'.

        Returns:
            None

        Side Effects:
            Binds the endpoint as host and sends ``meeting_created`` to it.
        """
        try:
            self._ensure_unbound(endpoint)
        except AlreadyInMeeting as e:
            logger.warning(f"create_meeting from {endpoint.participant_id} rejected: {e}")
            send_error_message(endpoint.websocket, ALREADY_IN_MEETING_MESSAGE)
            return

        name = resolve_name(data.get("name"), DEFAULT_HOST_NAME)
        meeting_id = self.sessions.create(endpoint.participant_id, name, endpoint.websocket)
        endpoint.bind(meeting_id, name, is_host=True)

        send_message(endpoint.websocket, "meeting_created", {
            "meetingId": meeting_id,
            "participantId": endpoint.participant_id,
        })

    async def handle_join_meeting(self, endpoint, data):
        """
        Join an existing meeting and announce the arrival to everyone already in it.

        The joiner receives a snapshot of the other participants; each of them
        receives one ``participant_joined``. An unknown code produces an
        ``error`` envelope and leaves both the registry and the endpoint untouched.

        Args:
            endpoint (Endpoint): Sender's connection identity.
            data (dict): Parsed message containing 'meetingId' and optionally 'name'.

        Returns:
            None
        """
        meeting_id = data.get("meetingId")
        name = resolve_name(data.get("name"), DEFAULT_GUEST_NAME)

        try:
            self._ensure_unbound(endpoint)
            if not is_meeting_code(meeting_id):
                raise MeetingNotFound(meeting_id)
            peers = self.sessions.join(meeting_id, endpoint.participant_id, name, endpoint.websocket)
        except MeetingNotFound:
            logger.info(f"Join by {endpoint.participant_id} to unknown meeting {meeting_id!r}")
            send_error_message(endpoint.websocket, MEETING_NOT_FOUND_MESSAGE)
            return
        except AlreadyInMeeting as e:
            logger.warning(f"join_meeting from {endpoint.participant_id} rejected: {e}")
            send_error_message(endpoint.websocket, ALREADY_IN_MEETING_MESSAGE)
            return

        endpoint.bind(meeting_id, name, is_host=False)
        # Snapshot taken right after the join so the announcement set matches the peer list
        others = self.sessions.get(meeting_id).others(endpoint.participant_id)

        send_message(endpoint.websocket, "meeting_joined", {
            "meetingId": meeting_id,
            "participantId": endpoint.participant_id,
            "participants": peers,
        })
        broadcast(others, "participant_joined", {
            "participantId": endpoint.participant_id,
            "participantName": name,
        })

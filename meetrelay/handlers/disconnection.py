# handlers/disconnection.py
import logging

from meetrelay.services.messaging import broadcast
from meetrelay.services.state import registry

logger = logging.getLogger(__name__)


async def handle_disconnection(endpoint, sessions=None):
    """
    Remove a closed connection's participant from its meeting.

    Peers are told about the departure with ``participant_left``. If the
    departing participant hosted the meeting, the meeting is torn down: it is
    unregistered and every remaining connection is closed. Calling this twice,
    or for an endpoint that never joined a meeting, does nothing.

    Args:
        endpoint (Endpoint): Identity of the closed connection.
        sessions (SessionRegistry, optional): Registry to update. Defaults to the process-wide one.

    Returns:
        None
    """
    sessions = sessions if sessions is not None else registry
    if not endpoint.bound:
        return

    session = sessions.get(endpoint.meeting_id)
    if session is None or endpoint.participant_id not in session.participants:
        return

    # Sends never yield, so nothing else is routed until teardown has unregistered the meeting
    others = session.others(endpoint.participant_id)
    sessions.remove(endpoint.meeting_id, endpoint.participant_id)
    logger.info(f"{endpoint.participant_id} left meeting {endpoint.meeting_id}")

    broadcast(others, "participant_left", {
        "participantId": endpoint.participant_id,
        "participantName": endpoint.name,
    })

    if endpoint.is_host:
        await sessions.teardown(endpoint.meeting_id)

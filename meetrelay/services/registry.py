# services/registry.py
"""
In-memory meeting registry.

The registry owns every Session and every Participant record. All mutating
methods except `teardown` are synchronous, and `teardown` deletes the session
before its first ``await``. Running on a single asyncio event loop therefore
serializes every mutation without locks: no handler can observe a
half-applied change.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from meetrelay.services.errors import MeetingNotFound
from meetrelay.services.identifiers import generate_meeting_code

logger = logging.getLogger(__name__)


class Participant:
    """
    One connected identity inside a meeting.

    Attributes:
        id (str): Participant id, unique per connection.
        name (str): Display name fixed at create/join time.
        websocket: Connection used to reach this participant.
        is_host (bool): True for the meeting creator only.
    """
    __slots__ = ("id", "name", "websocket", "is_host")

    def __init__(self, participant_id: str, name: str, websocket, is_host: bool = False) -> None:
        self.id = participant_id
        self.name = name
        self.websocket = websocket
        self.is_host = is_host

    def as_peer(self) -> Dict[str, str]:
        """Public view sent to other participants."""
        return {"id": self.id, "name": self.name}

    def __repr__(self) -> str:
        return f"Participant(id={self.id!r}, name={self.name!r}, is_host={self.is_host})"


class Session:
    """
    A meeting: a code plus the participants currently in it.

    Attributes:
        code (str): Meeting code.
        participants (Dict[str, Participant]): Members keyed by participant id.
        is_active (bool): True while the meeting is registered.
        created_at (datetime): UTC creation time.
    """
    __slots__ = ("code", "participants", "is_active", "created_at")

    def __init__(self, code: str) -> None:
        self.code = code
        self.participants: Dict[str, Participant] = {}
        self.is_active = True
        self.created_at = datetime.now(timezone.utc)

    def others(self, participant_id: str) -> List[Participant]:
        """Snapshot of every participant except `participant_id`."""
        return [p for pid, p in self.participants.items() if pid != participant_id]

    def __len__(self) -> int:
        return len(self.participants)


async def close_connections(participants: List[Participant]) -> None:
    """
    Close every participant's connection concurrently.

    Failures are logged per participant and never abort the other closes.

    Args:
        participants (List[Participant]): Participants to disconnect.
    """
    results = await asyncio.gather(
        *(p.websocket.close() for p in participants),
        return_exceptions=True,
    )
    for participant, result in zip(participants, results):
        if isinstance(result, Exception):
            logger.warning(f"Failed to close connection of {participant.id}", exc_info=result)


class SessionRegistry:
    """
    Process-wide mapping from meeting code to Session.
    """

    def __init__(self) -> None:
        self.sessions: Dict[str, Session] = {}

    def create(self, participant_id: str, name: str, websocket) -> str:
        """
        Register a new meeting with its creator as the only participant and host.

        A freshly generated code that collides with a live meeting replaces it.

        Args:
            participant_id (str): Creator's participant id.
            name (str): Creator's display name.
            websocket: Creator's connection.

        Returns:
            str: The new meeting code.
        """
        code = generate_meeting_code()
        if code in self.sessions:
            logger.warning(f"Meeting code {code} collided with a live meeting; replacing it")

        session = Session(code)
        session.participants[participant_id] = Participant(
            participant_id, name, websocket, is_host=True)
        self.sessions[code] = session
        logger.info(f"Meeting {code} created by {participant_id}")
        return code

    def join(self, code: str, participant_id: str, name: str, websocket) -> List[Dict[str, str]]:
        """
        Add a non-host participant to an existing meeting.

        Args:
            code (str): Meeting code.
            participant_id (str): Joining participant id.
            name (str): Joining participant's display name.
            websocket: Joining participant's connection.

        Returns:
            List[Dict[str, str]]: ``{"id", "name"}`` of every other participant at join time.

        Raises:
            MeetingNotFound: If `code` is not registered.
        """
        session = self.sessions.get(code)
        if session is None:
            raise MeetingNotFound(code)

        session.participants[participant_id] = Participant(
            participant_id, name, websocket, is_host=False)
        logger.info(f"{participant_id} joined meeting {code} ({len(session)} participants)")
        return [p.as_peer() for p in session.others(participant_id)]

    def remove(self, code: str, participant_id: str) -> Optional[Participant]:
        """
        Remove a participant from a meeting. Missing meetings or participants are ignored.

        Returns:
            Optional[Participant]: The removed participant, or None.
        """
        session = self.sessions.get(code)
        if session is None:
            return None
        return session.participants.pop(participant_id, None)

    def end(self, code: str) -> List[Participant]:
        """
        Unregister a meeting without touching its connections.

        Args:
            code (str): Meeting code.

        Returns:
            List[Participant]: Participants still in the meeting when it ended.
        """
        session = self.sessions.pop(code, None)
        if session is None:
            return []
        session.is_active = False
        remaining = list(session.participants.values())
        session.participants.clear()
        logger.info(f"Meeting {code} ended with {len(remaining)} participant(s) remaining")
        return remaining

    async def teardown(self, code: str) -> List[Participant]:
        """
        Delete a meeting and close every remaining participant's connection.

        The meeting is unregistered before any connection is closed.

        Args:
            code (str): Meeting code.

        Returns:
            List[Participant]: Participants whose connections were closed.
        """
        remaining = self.end(code)
        await close_connections(remaining)
        return remaining

    def get(self, code) -> Optional[Session]:
        """Return the Session for `code`, or None."""
        return self.sessions.get(code)

    def exists(self, code) -> bool:
        return code in self.sessions

    def is_active(self, code) -> bool:
        session = self.sessions.get(code)
        return session.is_active if session is not None else False

    def status(self, code) -> Dict[str, bool]:
        """Read-only status view: ``{"exists": bool, "isActive": bool}``."""
        return {"exists": self.exists(code), "isActive": self.is_active(code)}

    def __len__(self) -> int:
        return len(self.sessions)

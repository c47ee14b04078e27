# services/endpoint.py
from typing import Optional

from meetrelay.services.identifiers import generate_participant_id


class Endpoint:
    """
    Per-connection identity.

    An endpoint starts unbound with a fresh participant id. A successful
    create or join binds it to exactly one meeting for the rest of the
    connection's lifetime.

    Attributes:
        websocket: The underlying connection.
        participant_id (str): Generated at connect time.
        meeting_id (Optional[str]): Bound meeting code, None until bound.
        name (Optional[str]): Display name chosen at create/join.
        is_host (bool): True if this endpoint created its meeting.
    """

    def __init__(self, websocket, participant_id: Optional[str] = None) -> None:
        self.websocket = websocket
        self.participant_id = participant_id or generate_participant_id()
        self.meeting_id: Optional[str] = None
        self.name: Optional[str] = None
        self.is_host = False

    @property
    def bound(self) -> bool:
        return self.meeting_id is not None

    def bind(self, meeting_id: str, name: str, is_host: bool = False) -> None:
        self.meeting_id = meeting_id
        self.name = name
        self.is_host = is_host

    def __repr__(self) -> str:
        return (f"Endpoint(participant_id={self.participant_id!r}, "
                f"meeting_id={self.meeting_id!r}, is_host={self.is_host})")

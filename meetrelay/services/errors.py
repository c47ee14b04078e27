# services/errors.py
"""
Exceptions raised by the meeting registry and envelope parsing.

Handlers catch these at the routing boundary and turn them into ``error``
envelopes or log entries; none of them ever closes a connection.
"""


class RelayError(Exception):
    """Base class for all relay errors."""


class MeetingNotFound(RelayError):
    """A join referenced a meeting code that is not registered."""

    def __init__(self, meeting_id):
        super().__init__(f"Meeting {meeting_id!r} not found")
        self.meeting_id = meeting_id


class AlreadyInMeeting(RelayError):
    """A connection that is already bound tried to create or join again."""

    def __init__(self, meeting_id):
        super().__init__(f"Connection already bound to meeting {meeting_id!r}")
        self.meeting_id = meeting_id


class MalformedEnvelope(RelayError):
    """An inbound frame is not a JSON object with a string ``type`` field."""

# services/identifiers.py
"""
Random identifiers for participants and meetings.

Participant ids are opaque lowercase hex tokens. Meeting codes are short,
human-shareable strings such as ``AB3-7XQ-K9Z``. Neither is checked against
existing values; the random space makes accidental reuse negligible.
"""
import re
import secrets

from meetrelay.constants import (
    MEETING_CODE_ALPHABET, MEETING_CODE_GROUPS,
    MEETING_CODE_GROUP_SIZE, MEETING_CODE_SEPARATOR, PARTICIPANT_ID_BYTES
)

#: Pattern every generated meeting code matches.
MEETING_CODE_PATTERN = re.compile(
    r"^[A-Z0-9]{%d}(?:%s[A-Z0-9]{%d}){%d}$" % (
        MEETING_CODE_GROUP_SIZE,
        re.escape(MEETING_CODE_SEPARATOR),
        MEETING_CODE_GROUP_SIZE,
        MEETING_CODE_GROUPS - 1,
    )
)


def generate_participant_id() -> str:
    """
    Generate an opaque participant id.

    Returns:
        str: ``2 * PARTICIPANT_ID_BYTES`` lowercase hex characters.
    """
    return secrets.token_hex(PARTICIPANT_ID_BYTES)


def generate_meeting_code() -> str:
    """
    Generate a human-shareable meeting code.

    Each character is drawn uniformly from MEETING_CODE_ALPHABET using the
    system CSPRNG.

    Returns:
        str: Code in ``XXX-XXX-XXX`` shape.
    """
    groups = (
        "".join(secrets.choice(MEETING_CODE_ALPHABET)
                for _ in range(MEETING_CODE_GROUP_SIZE))
        for _ in range(MEETING_CODE_GROUPS)
    )
    return MEETING_CODE_SEPARATOR.join(groups)


def is_meeting_code(value) -> bool:
    """Return True if `value` is a string shaped like a generated meeting code."""
    return isinstance(value, str) and MEETING_CODE_PATTERN.match(value) is not None

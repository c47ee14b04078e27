"""
Application-wide constants for identifiers, meeting defaults, WebSocket keepalive and rate limiting.
"""

# --- Identifier Generation ---
#: Number of random bytes behind a participant id (rendered as 2x hex chars).
PARTICIPANT_ID_BYTES: int = 8
#: Characters a meeting code is drawn from.
MEETING_CODE_ALPHABET: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
#: Number of character groups in a meeting code.
MEETING_CODE_GROUPS: int = 3
#: Characters per group in a meeting code.
MEETING_CODE_GROUP_SIZE: int = 3
#: Separator placed between meeting code groups.
MEETING_CODE_SEPARATOR: str = "-"

# --- Meeting Defaults ---
#: Display name used when a meeting creator sends no usable name.
DEFAULT_HOST_NAME: str = "Host"
#: Display name used when a joining participant sends no usable name.
DEFAULT_GUEST_NAME: str = "Guest"
#: Error text sent when a join references an unknown meeting code.
MEETING_NOT_FOUND_MESSAGE: str = "Meeting not found"
#: Error text sent when a connection tries to create or join a second meeting.
ALREADY_IN_MEETING_MESSAGE: str = "Already in a meeting"

# --- Server Defaults ---
#: Interface the server binds to when HOST is not set.
DEFAULT_HOST: str = "0.0.0.0"
#: Port the server listens on when PORT is not set.
DEFAULT_PORT: int = 3000
#: URL prefix of the read-only meeting status query.
STATUS_PATH_PREFIX: str = "/api/meeting/"

# --- WebSocket Heartbeat Configuration ---
#: Interval (in seconds) between keepalive pings to clients.
HEARTBEAT_INTERVAL: int = 20
#: Timeout (in seconds) to wait for a pong before closing.
HEARTBEAT_TIMEOUT: int = 20

# --- Outbound Delivery ---
#: Unsent bytes a connection may hold before further frames to it are skipped.
SEND_BACKLOG_LIMIT: int = 4 * 1024 * 1024

# --- Logging ---
#: Relayed fields whose values are masked in log output.
REDACTED_LOG_FIELDS = ("offer", "answer", "candidate", "message")

# --- Inbound Rate Limiting ---
#: Length of the sliding window in seconds.
WINDOW_SECONDS: int = 5
#: Max messages allowed from one connection within the window.
MAX_MSG_PER_WIN: int = 200
#: Ban duration in seconds once the limit is exceeded.
BAN_SECONDS: int = 30
#: Close code sent to a connection that exceeded the rate limit.
RATE_LIMIT_CLOSE_CODE: int = 4008

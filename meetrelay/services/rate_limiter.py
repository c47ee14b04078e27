"""
Sliding-window rate limiter for inbound WebSocket frames.

Each connection gets its own window, keyed by participant id. A connection
that exceeds the limit is banned for a short period; the connection handler
closes it when `allow` returns False.

Usage:
    limiter = RateLimiter()
    if limiter.allow(key):
        # route message
    else:
        # close connection
    limiter.forget(key)  # clear state on disconnect
"""
import time
from collections import deque, defaultdict
from typing import Deque, Dict

from meetrelay.constants import BAN_SECONDS, MAX_MSG_PER_WIN, WINDOW_SECONDS


class _Window:
    """
    Timestamps of recent events for one key.

    Attributes:
        hits (Deque[float]): Event timestamps, oldest first.
    """
    __slots__ = ("hits",)

    def __init__(self) -> None:
        self.hits: Deque[float] = deque()


class RateLimiter:
    """
    Per-key sliding-window limiter with temporary bans.

    Args:
        window_seconds (float): Length of the sliding window.
        max_per_window (int): Events allowed inside one window.
        ban_seconds (float): Ban length once the limit is exceeded.
    """

    def __init__(self,
                 window_seconds: float = WINDOW_SECONDS,
                 max_per_window: int = MAX_MSG_PER_WIN,
                 ban_seconds: float = BAN_SECONDS) -> None:
        self.window_seconds = window_seconds
        self.max_per_window = max_per_window
        self.ban_seconds = ban_seconds
        self._wins: Dict[str, _Window] = defaultdict(_Window)
        self._banned_until: Dict[str, float] = {}

    def allow(self, key: str) -> bool:
        """
        Record one event for `key` and decide whether it may proceed.

        Args:
            key (str): Identifier of the connection being limited.

        Returns:
            bool: True if allowed; False if the limit was exceeded or `key` is banned.
        """
        now = time.time()

        # Check existing ban
        ban_deadline = self._banned_until.get(key)
        if ban_deadline and now < ban_deadline:
            return False
        if ban_deadline:
            # Ban expired
            del self._banned_until[key]

        win = self._wins[key].hits
        win.append(now)

        # Drop timestamps outside the sliding window
        while win and now - win[0] > self.window_seconds:
            win.popleft()

        if len(win) > self.max_per_window:
            self._banned_until[key] = now + self.ban_seconds
            win.clear()
            return False
        return True

    def forget(self, key: str) -> None:
        """
        Clear all state for `key`, including any ban.

        Args:
            key (str): Identifier of the connection.
        """
        self._wins.pop(key, None)
        self._banned_until.pop(key, None)

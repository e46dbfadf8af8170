"""Process-wide deadline shared by every blocking operation."""

import time
from typing import Optional

import httpx

HARD_TIMEOUT = 15.0
CONNECT_TIMEOUT = 5.0
WRITE_TIMEOUT = 5.0


class Deadline:
    """A fixed instant on the monotonic clock. Never extended."""

    def __init__(self, seconds: float = HARD_TIMEOUT):
        self.seconds = seconds
        self._expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        """Seconds left before the deadline, never negative."""
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        return time.monotonic() >= self._expires_at

    def http_timeout(self, connect: Optional[float] = CONNECT_TIMEOUT) -> httpx.Timeout:
        """Build an httpx timeout whose every phase fits in the remaining time."""
        remaining = self.remaining()
        return httpx.Timeout(
            remaining,
            connect=min(connect, remaining) if connect else remaining,
            read=remaining,
            write=min(WRITE_TIMEOUT, remaining),
            pool=remaining,
        )

    def describe(self) -> str:
        return f"{self.seconds:g}s timeout exceeded"

    def __repr__(self):
        return f"Deadline(seconds={self.seconds}, remaining={self.remaining():.2f})"

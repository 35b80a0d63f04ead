"""Fixed-window request admission control."""

import math
import time
from dataclasses import dataclass
from typing import Callable, Dict


@dataclass
class RateLimitEntry:
    """Requests seen for one identifier in the current window."""

    count: int
    reset_at: float


class RateLimiter:
    """Simple fixed window rate limiter.

    One instance per limiter scope (e.g. session creation keyed by IP,
    submission keyed by session ID). Windows reset as a whole once
    ``now > reset_at``; they do not slide.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize rate limiter.

        Args:
            max_requests: Maximum requests admitted per window.
            window_seconds: Window length in seconds.
            clock: Time source (injectable for testing).
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self.entries: Dict[str, RateLimitEntry] = {}

    def is_allowed(self, identifier: str) -> bool:
        """Check if request is allowed, counting it if so.

        Args:
            identifier: Rate limit key (e.g., client IP or session ID).

        Returns:
            True if request is allowed, False if rate limited.
        """
        now = self._clock()
        entry = self.entries.get(identifier)

        if entry is None or now > entry.reset_at:
            self.entries[identifier] = RateLimitEntry(
                count=1, reset_at=now + self.window_seconds
            )
            return True

        if entry.count >= self.max_requests:
            return False

        entry.count += 1
        return True

    def retry_after(self, identifier: str) -> int:
        """Whole seconds until the identifier's window resets (0 if none)."""
        entry = self.entries.get(identifier)
        if entry is None:
            return 0
        return max(0, math.ceil(entry.reset_at - self._clock()))

    def sweep(self) -> int:
        """Drop entries whose window has elapsed.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        expired = [key for key, entry in self.entries.items() if now > entry.reset_at]
        for key in expired:
            del self.entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self.entries)

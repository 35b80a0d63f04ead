"""Formatting utilities for CLI output."""

import time


def format_time_remaining(expires_at_ms: int, now: float | None = None) -> str:
    """Format time left until expiry as ``m:ss``.

    Args:
        expires_at_ms: Expiry in milliseconds since the epoch.
        now: Current Unix time in seconds (defaults to time.time()).

    Returns:
        Remaining time like "4:59", or "0:00" once expired.

    Examples:
        >>> format_time_remaining(90_000, now=0)
        '1:30'
    """
    if now is None:
        now = time.time()

    remaining = max(0, int(expires_at_ms / 1000 - now))
    minutes, seconds = divmod(remaining, 60)
    return f"{minutes}:{seconds:02d}"

"""Relay session record."""

import secrets
import time
from dataclasses import dataclass, field
from typing import Optional

SESSION_TTL = 300.0  # 5 minutes


def generate_session_id() -> str:
    """Generate an unguessable session ID.

    Returns:
        32 hex chars (128 random bits).
    """
    return secrets.token_hex(16)


@dataclass(frozen=True)
class Session:
    """A pairing handle waiting for a single link.

    Attributes:
        session_id: Unique session identifier.
        expires_at: Unix timestamp after which the session is gone.
        created_at: Unix timestamp when session was created.
        link: Relayed URL, None until the phone submits one.
    """

    session_id: str
    expires_at: float
    created_at: float = field(default_factory=time.time)
    link: Optional[str] = None

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Check whether the session is past its expiry."""
        if now is None:
            now = time.time()
        return now >= self.expires_at

    @property
    def expires_at_ms(self) -> int:
        """Expiry as milliseconds since the epoch (wire format)."""
        return int(self.expires_at * 1000)

"""In-memory registry of relay sessions.

Every method runs to completion without awaiting, so each one is atomic
with respect to the event loop and no lock is needed.
"""

import asyncio
import dataclasses
import logging
import time
from typing import Callable, Dict, Optional, Set

from linkbeam.relay.session import Session

logger = logging.getLogger(__name__)


class SessionStore:
    """Authoritative owner of relay sessions.

    Expiry is enforced lazily on read; ``sweep_expired`` only reclaims
    memory. "Missing" and "expired" both come back as None so callers
    cannot tell them apart.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """Initialize empty store.

        Args:
            clock: Time source (injectable for testing).
        """
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._watchers: Dict[str, Set[asyncio.Event]] = {}

    def create(self, session_id: str, expires_at: float) -> Session:
        """Insert a new session without a link.

        Args:
            session_id: New session ID.
            expires_at: Unix timestamp of expiry.

        Returns:
            The stored session.
        """
        session = Session(
            session_id=session_id,
            expires_at=expires_at,
            created_at=self._clock(),
        )
        self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> Optional[Session]:
        """Get a live session by ID, evicting it if expired.

        Args:
            session_id: Session ID.

        Returns:
            Session if found and live, None otherwise.
        """
        session = self._sessions.get(session_id)
        if session is None:
            return None

        if session.is_expired(self._clock()):
            self._evict(session_id)
            return None

        return session

    def set_link_once(self, session_id: str, link: str) -> bool:
        """Attach a link to a live session that has none yet.

        Args:
            session_id: Session ID.
            link: Sanitized, validated URL.

        Returns:
            True if stored, False if the session is missing, expired, or
            already holds a link.
        """
        session = self.get(session_id)
        if session is None or session.link is not None:
            return False

        self._sessions[session_id] = dataclasses.replace(session, link=link)
        self._notify(session_id)
        return True

    def delete(self, session_id: str) -> None:
        """Remove a session. No-op if it does not exist."""
        if self._sessions.pop(session_id, None) is not None:
            self._notify(session_id)

    def sweep_expired(self) -> int:
        """Remove every expired session.

        Returns:
            Number of sessions removed.
        """
        now = self._clock()
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if session.is_expired(now)
        ]
        for session_id in expired:
            self._evict(session_id)
        return len(expired)

    def now(self) -> float:
        """Current time on the clock session expiry is measured against."""
        return self._clock()

    def watch(self, session_id: str) -> asyncio.Event:
        """Get an event that is set whenever the session changes.

        The caller clears the event after waking and must ``unwatch`` it
        when done.
        """
        event = asyncio.Event()
        self._watchers.setdefault(session_id, set()).add(event)
        return event

    def unwatch(self, session_id: str, event: asyncio.Event) -> None:
        """Stop delivering change notifications to ``event``."""
        watchers = self._watchers.get(session_id)
        if watchers is None:
            return
        watchers.discard(event)
        if not watchers:
            del self._watchers[session_id]

    def _evict(self, session_id: str) -> None:
        del self._sessions[session_id]
        logger.debug(f"Session expired: {session_id[:8]}...")
        self._notify(session_id)

    def _notify(self, session_id: str) -> None:
        for event in self._watchers.get(session_id, ()):
            event.set()

    def __len__(self) -> int:
        """Return number of stored sessions, including unswept expired ones."""
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        """Check if a live session exists, without evicting anything."""
        session = self._sessions.get(session_id)
        return session is not None and not session.is_expired(self._clock())

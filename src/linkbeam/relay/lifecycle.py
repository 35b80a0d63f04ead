"""Session lifecycle: creation and link submission."""

import logging
import time
from typing import Any, Callable

from linkbeam.errors import RateLimitedError, SessionNotFoundError
from linkbeam.rate_limiter import RateLimiter
from linkbeam.relay.session import SESSION_TTL, Session, generate_session_id
from linkbeam.relay.store import SessionStore
from linkbeam.relay.validation import validate_link

logger = logging.getLogger(__name__)


class SessionLifecycle:
    """Creates sessions and accepts their single link submission.

    Nothing reaches the store unless it passed admission control and
    link validation.
    """

    def __init__(
        self,
        store: SessionStore,
        create_limiter: RateLimiter,
        submit_limiter: RateLimiter,
        ttl: float = SESSION_TTL,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize lifecycle manager.

        Args:
            store: Session store.
            create_limiter: Limiter for session creation, keyed by requester.
            submit_limiter: Limiter for submissions, keyed by session ID.
            ttl: Session lifetime in seconds.
            clock: Time source (injectable for testing).
        """
        self.store = store
        self.create_limiter = create_limiter
        self.submit_limiter = submit_limiter
        self.ttl = ttl
        self._clock = clock

    def create_session(self, requester: str) -> Session:
        """Create a new session.

        Args:
            requester: Requester identity (client IP).

        Returns:
            The new session.

        Raises:
            RateLimitedError: If the requester created too many sessions.
        """
        session_id = generate_session_id()
        expires_at = self._clock() + self.ttl

        if not self.create_limiter.is_allowed(requester):
            logger.warning(f"Session creation rate limited for {requester}")
            raise RateLimitedError(self.create_limiter.retry_after(requester))

        # 128 random bits; regenerate rather than ever reuse a live ID
        while session_id in self.store:
            session_id = generate_session_id()

        session = self.store.create(session_id, expires_at)
        logger.info(f"Session created: {session_id[:8]}...")
        return session

    def submit_link(self, session_id: str, link: Any) -> None:
        """Submit the link for a session.

        Checks run in order: admission, shape, sanitization, URL
        validation, then the store's check-and-set.

        Args:
            session_id: Target session ID.
            link: Raw submitted value.

        Raises:
            RateLimitedError: Too many submissions for this session.
            InvalidLinkError: Link missing, dangerous, or malformed.
            SessionNotFoundError: Session missing, expired, or already used.
        """
        if not self.submit_limiter.is_allowed(session_id):
            logger.warning(f"Submission rate limited for {session_id[:8]}...")
            raise RateLimitedError(self.submit_limiter.retry_after(session_id))

        url = validate_link(link)

        if not self.store.set_link_once(session_id, url):
            logger.info(f"Submission rejected for {session_id[:8]}...")
            raise SessionNotFoundError()

        logger.info(f"Link received for session {session_id[:8]}...")

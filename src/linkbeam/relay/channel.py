"""Notification channel: pushes a session's outcome to the desktop.

One channel observes one session. It emits a ``connected`` event, then
exactly one of ``link``, ``timeout`` or ``error`` and stops. If the
observer goes away first it stops without emitting anything.
"""

import asyncio
import logging
import time
from enum import Enum, auto
from typing import Any, Callable, Coroutine, Dict, Optional

from linkbeam.relay.session import SESSION_TTL
from linkbeam.relay.store import SessionStore

logger = logging.getLogger(__name__)

# Type alias for send callback
SendCallback = Callable[[Dict[str, Any]], Coroutine[Any, Any, None]]


class ChannelState(Enum):
    """Notification channel states."""

    CONNECTING = auto()
    WATCHING = auto()
    DELIVERED = auto()
    TIMED_OUT = auto()
    ERRORED = auto()
    CLOSED = auto()  # observer disconnected


TERMINAL_STATES = frozenset(
    {
        ChannelState.DELIVERED,
        ChannelState.TIMED_OUT,
        ChannelState.ERRORED,
        ChannelState.CLOSED,
    }
)


class NotificationChannel:
    """Watches a session until it gets a link, expires, or vanishes.

    Usage:
        channel = NotificationChannel(store, session_id)
        await channel.run(send)

    The store wakes the channel as soon as the session changes; polling
    every ``poll_interval`` seconds covers everything else (TTL, grace
    period, observer disconnect).

    The channel deadline is its own TTL or the expiry of the watched
    session, whichever comes first. Both end in ``timeout``.
    """

    def __init__(
        self,
        store: SessionStore,
        session_id: str,
        ttl: float = SESSION_TTL,
        poll_interval: float = 1.0,
        grace_period: float = 3.0,
        is_open: Optional[Callable[[], bool]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the channel.

        Args:
            store: Session store to observe.
            session_id: Session to watch.
            ttl: Maximum channel lifetime in seconds.
            poll_interval: Seconds between checks.
            grace_period: Seconds during which a missing session is
                treated as not yet created.
            is_open: Returns False once the observer has disconnected.
            clock: Monotonic time source (injectable for testing).
        """
        self.session_id = session_id
        self.state = ChannelState.CONNECTING
        self._store = store
        self._ttl = ttl
        self._poll_interval = poll_interval
        self._grace_period = grace_period
        self._is_open = is_open or (lambda: True)
        self._clock = clock
        # Expiry of the session as last seen live, on the store clock
        self._expires_at: Optional[float] = None

    @property
    def is_finished(self) -> bool:
        """Whether the channel reached a terminal state."""
        return self.state in TERMINAL_STATES

    async def run(self, send: SendCallback) -> ChannelState:
        """Drive the channel to a terminal state.

        Args:
            send: Async function delivering one event to the observer.

        Returns:
            The terminal state reached.
        """
        opened_at = self._clock()
        changed = self._store.watch(self.session_id)

        try:
            await send({"type": "connected", "sessionId": self.session_id})
            self.state = ChannelState.WATCHING

            while not self.is_finished:
                if not self._is_open():
                    self._close()
                    break

                try:
                    event = self._check(self._clock() - opened_at)
                except Exception as e:
                    logger.error(f"Error polling session {self.session_id[:8]}...: {e}")
                    self.state = ChannelState.ERRORED
                    event = {"type": "error", "message": "Internal server error"}

                if event is not None:
                    await send(event)
                    if self.state == ChannelState.DELIVERED:
                        self._store.delete(self.session_id)
                    break

                await self._wait(changed)
        except ConnectionResetError:
            self._close()
        finally:
            self._store.unwatch(self.session_id, changed)

        return self.state

    def _check(self, elapsed: float) -> Optional[Dict[str, Any]]:
        """Evaluate the session once.

        Returns:
            The terminal event to emit, or None to keep watching.
        """
        if elapsed > self._ttl:
            return self._timeout()

        session = self._store.get(self.session_id)

        if session is None:
            # A session seen live and now past its expiry ran out its TTL
            if self._expires_at is not None and self._store.now() >= self._expires_at:
                return self._timeout()
            if elapsed <= self._grace_period:
                return None
            self.state = ChannelState.ERRORED
            logger.info(
                f"Session {self.session_id[:8]}... not found after {elapsed:.1f}s"
            )
            return {"type": "error", "message": "Session not found or expired"}

        self._expires_at = session.expires_at

        if session.link is not None:
            self.state = ChannelState.DELIVERED
            logger.info(f"Delivering link for session {self.session_id[:8]}...")
            return {"type": "link", "link": session.link}

        return None

    def _timeout(self) -> Dict[str, Any]:
        self.state = ChannelState.TIMED_OUT
        logger.info(f"Channel timed out for session {self.session_id[:8]}...")
        return {"type": "timeout", "message": "Session expired"}

    async def _wait(self, changed: asyncio.Event) -> None:
        try:
            await asyncio.wait_for(changed.wait(), timeout=self._poll_interval)
        except asyncio.TimeoutError:
            pass
        changed.clear()

    def _close(self) -> None:
        self.state = ChannelState.CLOSED
        logger.info(f"Channel closed for session {self.session_id[:8]}...")

"""Background reclamation of expired sessions and rate-limit windows."""

import asyncio
import logging
from typing import Optional, Sequence

from linkbeam.rate_limiter import RateLimiter
from linkbeam.relay.store import SessionStore

logger = logging.getLogger(__name__)


class Sweeper:
    """Periodically purges expired state.

    Correctness never depends on the sweeper: the store evicts on read and
    limiters reset windows on access. This only bounds memory.
    """

    def __init__(
        self,
        store: SessionStore,
        limiters: Sequence[RateLimiter] = (),
        interval: float = 60.0,
    ):
        """Initialize sweeper.

        Args:
            store: Session store to sweep.
            limiters: Rate limiters to sweep.
            interval: Seconds between sweeps.
        """
        self._store = store
        self._limiters = list(limiters)
        self._interval = interval
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        """Whether the sweep loop is active."""
        return self._running

    async def start(self) -> None:
        """Start the sweep loop."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())
        logger.debug(f"Sweeper started (interval={self._interval}s)")

    async def stop(self) -> None:
        """Stop the sweep loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.debug("Sweeper stopped")

    def sweep_now(self) -> int:
        """Run one sweep immediately.

        Returns:
            Total number of sessions and limiter entries removed.
        """
        removed = self._store.sweep_expired()
        for limiter in self._limiters:
            removed += limiter.sweep()
        return removed

    async def _sweep_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval)
            if not self._running:
                break
            try:
                removed = self.sweep_now()
                if removed:
                    logger.debug(f"Swept {removed} expired entries")
            except Exception as e:
                logger.warning(f"Sweep failed: {e}")

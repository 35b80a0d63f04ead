"""HTTP client for the relay server (used by the CLI)."""

import logging
from typing import Any, AsyncIterator, Dict, Optional

import aiohttp

from linkbeam.errors import RelayClientError
from linkbeam.events import iter_events

logger = logging.getLogger(__name__)


def parse_session_target(target: str) -> str:
    """Extract a session ID from an ID or a full submission URL.

    Examples:
        >>> parse_session_target("http://host:3000/submit/abc123")
        'abc123'
        >>> parse_session_target("abc123")
        'abc123'
    """
    target = target.strip().rstrip("/")
    if "/submit/" in target:
        return target.rsplit("/submit/", 1)[1].split("?", 1)[0].split("#", 1)[0]
    return target


class RelayClient:
    """Talks to a relay server on behalf of the desktop or the phone.

    Use as an async context manager so the HTTP session is closed.
    """

    REQUEST_TIMEOUT = 10.0  # seconds

    def __init__(
        self,
        server: str,
        http_session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize client.

        Args:
            server: Relay server base URL.
            http_session: Optional aiohttp session (for testing).
        """
        self._server = server.rstrip("/")
        self._session = http_session
        self._owns_session = http_session is None

    async def __aenter__(self):
        """Enter async context, creating session if needed."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *args):
        """Exit async context, closing owned session."""
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None

    @property
    def server(self) -> str:
        """The relay server URL."""
        return self._server

    async def create_session(self) -> Dict[str, Any]:
        """Create a session.

        Returns:
            ``{"sessionId", "expiresAt", "url"}`` from the server.

        Raises:
            RelayClientError: On rate limiting or any non-200 answer.
        """
        async with self._http.post(
            f"{self._server}/session",
            timeout=aiohttp.ClientTimeout(total=self.REQUEST_TIMEOUT),
        ) as resp:
            data = await self._read_json(resp)
            if resp.status != 200:
                raise RelayClientError(
                    data.get("error") or f"Failed to create session (HTTP {resp.status})"
                )
            return data

    async def submit_link(self, session_id: str, link: str) -> str:
        """Submit a link to a session.

        Returns:
            The server's confirmation message.

        Raises:
            RelayClientError: With the server's error text on failure.
        """
        async with self._http.post(
            f"{self._server}/submit/{session_id}",
            json={"link": link},
            timeout=aiohttp.ClientTimeout(total=self.REQUEST_TIMEOUT),
        ) as resp:
            data = await self._read_json(resp)
            if resp.status != 200:
                raise RelayClientError(
                    data.get("error") or f"Failed to submit link (HTTP {resp.status})"
                )
            return data.get("message", "Link sent")

    async def listen(self, session_id: str) -> AsyncIterator[Dict[str, Any]]:
        """Stream notification events for a session.

        Yields:
            Event payloads until the server closes the stream.
        """
        # No total timeout: the stream stays open until the session resolves
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self.REQUEST_TIMEOUT)
        async with self._http.get(
            f"{self._server}/listen/{session_id}",
            headers={"Accept": "text/event-stream"},
            timeout=timeout,
        ) as resp:
            if resp.status != 200:
                raise RelayClientError(f"Failed to listen (HTTP {resp.status})")
            async for event in iter_events(resp.content):
                yield event

    @property
    def _http(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("RelayClient must be used as an async context manager")
        return self._session

    async def _read_json(self, resp: aiohttp.ClientResponse) -> Dict[str, Any]:
        try:
            data = await resp.json(content_type=None)
        except ValueError:
            logger.debug(f"Non-JSON response (HTTP {resp.status})")
            return {}
        return data if isinstance(data, dict) else {}

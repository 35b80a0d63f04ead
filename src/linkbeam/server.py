"""HTTP server for the link relay.

Single aiohttp server handling all routes:
- /health - Health check
- POST /session - Create a session (desktop)
- GET /listen/{id} - Notification stream for a session (desktop)
- GET /submit/{id} - Submission page (phone)
- POST /submit/{id} - Submit the link (phone)
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from aiohttp import web

from linkbeam.config import Config
from linkbeam.errors import InvalidLinkError, RateLimitedError, SessionNotFoundError
from linkbeam.events import EVENT_STREAM_HEADERS, format_event
from linkbeam.pages import render_submit_page
from linkbeam.rate_limiter import RateLimiter
from linkbeam.relay import NotificationChannel, SessionLifecycle, SessionStore, Sweeper

logger = logging.getLogger(__name__)


def get_client_ip(request: web.Request) -> str:
    """Requester identity from the forwarded-for header.

    Returns:
        First address in X-Forwarded-For, or "unknown" if absent.
    """
    forwarded = request.headers.get("X-Forwarded-For", "")
    ip = forwarded.split(",")[0].strip()
    return ip or "unknown"


class RelayServer:
    """HTTP server relaying one link per session from phone to desktop."""

    def __init__(
        self,
        config: Optional[Config] = None,
        store: Optional[SessionStore] = None,
    ):
        """Initialize relay server.

        Args:
            config: Relay configuration. Defaults are used if None.
            store: Session store (injectable for testing).
        """
        self.config = config or Config()
        self.store = store or SessionStore()

        limits = self.config.rate_limits
        self.create_limiter = RateLimiter(
            limits.create.max_requests, limits.create.window_seconds
        )
        self.submit_limiter = RateLimiter(
            limits.submit.max_requests, limits.submit.window_seconds
        )

        self.lifecycle = SessionLifecycle(
            store=self.store,
            create_limiter=self.create_limiter,
            submit_limiter=self.submit_limiter,
            ttl=self.config.sessions.ttl,
        )
        self.sweeper = Sweeper(
            self.store,
            limiters=[self.create_limiter, self.submit_limiter],
            interval=self.config.sessions.sweep_interval,
        )

        self.app = web.Application()
        self._setup_routes()
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None
        self._port: int = 0

    def _setup_routes(self) -> None:
        """Set up all HTTP routes."""
        self.app.router.add_get("/health", self._handle_health)

        # Desktop
        self.app.router.add_post("/session", self._handle_create_session)
        self.app.router.add_get("/listen/{session_id}", self._handle_listen)

        # Phone
        self.app.router.add_get("/submit/{session_id}", self._handle_submit_page)
        self.app.router.add_post("/submit/{session_id}", self._handle_submit)

    # =========================================================================
    # Health
    # =========================================================================

    async def _handle_health(self, request: web.Request) -> web.Response:
        """Health check endpoint."""
        return web.Response(text="OK")

    # =========================================================================
    # Desktop
    # =========================================================================

    async def _handle_create_session(self, request: web.Request) -> web.Response:
        """Create a new session and return its submission URL."""
        client_ip = get_client_ip(request)

        try:
            session = self.lifecycle.create_session(client_ip)
        except RateLimitedError as e:
            return self._rate_limited_response(e)
        except Exception as e:
            logger.error(f"Error creating session: {e}")
            return self._error_response("Failed to create session", status=500)

        return web.json_response({
            "sessionId": session.session_id,
            "expiresAt": session.expires_at_ms,
            "url": self.config.submit_url(session.session_id),
        })

    async def _handle_listen(self, request: web.Request) -> web.StreamResponse:
        """Stream the session outcome as server-sent events."""
        session_id = request.match_info["session_id"]

        response = web.StreamResponse(headers=EVENT_STREAM_HEADERS)
        await response.prepare(request)

        def is_open() -> bool:
            transport = request.transport
            return transport is not None and not transport.is_closing()

        async def send(event: Dict[str, Any]) -> None:
            await response.write(format_event(event))

        channel = NotificationChannel(
            self.store,
            session_id,
            ttl=self.config.sessions.ttl,
            poll_interval=self.config.sessions.poll_interval,
            grace_period=self.config.sessions.grace_period,
            is_open=is_open,
        )

        try:
            await channel.run(send)
        except asyncio.CancelledError:
            logger.debug(f"Listener cancelled for session {session_id[:8]}...")
            raise
        except Exception as e:
            logger.error(f"Notification stream failed for {session_id[:8]}...: {e}")
            if not channel.is_finished and is_open():
                await response.write(
                    format_event({"type": "error", "message": "Internal server error"})
                )
            return response

        if is_open():
            await response.write_eof()
        return response

    # =========================================================================
    # Phone
    # =========================================================================

    async def _handle_submit_page(self, request: web.Request) -> web.Response:
        """Serve the submission form the QR code points to."""
        session_id = request.match_info["session_id"]
        return web.Response(
            text=render_submit_page(session_id),
            content_type="text/html",
        )

    async def _handle_submit(self, request: web.Request) -> web.Response:
        """Accept the link for a session."""
        session_id = request.match_info["session_id"]

        # Unreadable bodies count as a missing link, after the rate limit check
        try:
            body = await request.json()
        except ValueError:
            body = None
        link = body.get("link") if isinstance(body, dict) else None

        try:
            self.lifecycle.submit_link(session_id, link)
        except RateLimitedError as e:
            return self._rate_limited_response(e)
        except InvalidLinkError as e:
            return self._error_response(str(e), status=400)
        except SessionNotFoundError as e:
            return self._error_response(str(e), status=404)
        except Exception as e:
            logger.error(f"Error submitting link: {e}")
            return self._error_response("Failed to submit link", status=500)

        return web.json_response({
            "success": True,
            "message": "Link sent successfully",
        })

    # =========================================================================
    # Helpers
    # =========================================================================

    def _error_response(self, message: str, status: int = 400) -> web.Response:
        """Create JSON error response."""
        return web.json_response({"error": message}, status=status)

    def _rate_limited_response(self, error: RateLimitedError) -> web.Response:
        response = self._error_response(str(error), status=429)
        if error.retry_after:
            response.headers["Retry-After"] = str(error.retry_after)
        return response

    # =========================================================================
    # Server lifecycle
    # =========================================================================

    async def start(self, host: str, port: int) -> web.AppRunner:
        """Start the server and the background sweeper.

        Args:
            host: Host to bind to.
            port: Port to bind to (0 for random).

        Returns:
            App runner for cleanup.
        """
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, host, port)
        await self._site.start()

        # Get actual port
        if self._site._server and self._site._server.sockets:
            self._port = self._site._server.sockets[0].getsockname()[1]
        else:
            self._port = port

        await self.sweeper.start()

        logger.info(f"Relay server started on {host}:{self._port}")
        return self._runner

    def get_port(self) -> int:
        """Get the actual bound port."""
        return self._port

    async def close(self) -> None:
        """Stop the sweeper and the server."""
        await self.sweeper.stop()

        if self._runner:
            await self._runner.cleanup()
            self._runner = None

        logger.info("Relay server closed")

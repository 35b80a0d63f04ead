"""Tests for the relay HTTP client."""

import asyncio

import pytest

from linkbeam.client import RelayClient, parse_session_target
from linkbeam.config import Config, SessionConfig
from linkbeam.errors import RelayClientError
from linkbeam.server import RelayServer


@pytest.fixture
async def base_url(aiohttp_server):
    """Running relay server with fast polling."""
    config = Config(sessions=SessionConfig(poll_interval=0.05, grace_period=0.2))
    server = await aiohttp_server(RelayServer(config).app)
    return str(server.make_url(""))


class TestParseSessionTarget:
    """Tests for parse_session_target."""

    def test_plain_id(self):
        assert parse_session_target("abc123") == "abc123"

    def test_submission_url(self):
        assert parse_session_target("http://host:3000/submit/abc123") == "abc123"

    def test_strips_query_and_slash(self):
        assert parse_session_target("https://h/submit/abc123/?x=1") == "abc123"
        assert parse_session_target("https://h/submit/abc123#top") == "abc123"


class TestRelayClient:
    """Tests against a real relay server."""

    async def test_requires_context_manager(self):
        """Using the client outside ``async with`` is an error."""
        client = RelayClient("http://localhost:1")
        with pytest.raises(RuntimeError):
            await client.create_session()

    async def test_create_submit_listen(self, base_url):
        """Full relay through the client."""
        async with RelayClient(base_url) as client:
            session = await client.create_session()
            session_id = session["sessionId"]

            events = []

            async def listen():
                async for event in client.listen(session_id):
                    events.append(event)

            task = asyncio.create_task(listen())
            await asyncio.sleep(0.1)

            message = await client.submit_link(session_id, "https://example.com")
            await asyncio.wait_for(task, timeout=5)

        assert message == "Link sent successfully"
        assert events == [
            {"type": "connected", "sessionId": session_id},
            {"type": "link", "link": "https://example.com"},
        ]

    async def test_submit_error_carries_server_message(self, base_url):
        """Server error text is surfaced to the caller."""
        async with RelayClient(base_url) as client:
            with pytest.raises(RelayClientError, match="Session not found or expired"):
                await client.submit_link("0" * 32, "https://example.com")

            session = await client.create_session()
            with pytest.raises(RelayClientError, match="Invalid URL protocol"):
                await client.submit_link(session["sessionId"], "javascript:alert(1)")

    async def test_create_rate_limited(self, base_url):
        """Rate limiting surfaces as a client error."""
        async with RelayClient(base_url) as client:
            for _ in range(10):
                await client.create_session()
            with pytest.raises(RelayClientError, match="Too many requests"):
                await client.create_session()

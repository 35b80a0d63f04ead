"""Tests for the in-memory session store."""

import asyncio

import pytest

from linkbeam.relay.store import SessionStore


@pytest.fixture
def store(clock):
    """Store driven by the fake clock."""
    return SessionStore(clock=clock)


class TestSessionStoreCreate:
    """Tests for create and get."""

    def test_create_then_get(self, store, clock):
        """Created session is readable with no link."""
        store.create("s1", clock.now + 300)
        session = store.get("s1")

        assert session is not None
        assert session.session_id == "s1"
        assert session.expires_at == clock.now + 300
        assert session.created_at == clock.now
        assert session.link is None

    def test_get_unknown_returns_none(self, store):
        """Unknown IDs are absent."""
        assert store.get("missing") is None

    def test_contains(self, store, clock):
        """Membership reflects live sessions only."""
        store.create("s1", clock.now + 10)
        assert "s1" in store
        clock.advance(10)
        assert "s1" not in store

    def test_contains_has_no_side_effects(self, store, clock):
        """Membership checks neither evict nor wake watchers."""
        store.create("s1", clock.now + 10)
        changed = store.watch("s1")
        clock.advance(10)

        assert "s1" not in store
        assert len(store) == 1
        assert not changed.is_set()

    def test_now_uses_store_clock(self, store, clock):
        """Expiry comparisons use the injected clock."""
        assert store.now() == clock.now


class TestSessionStoreExpiry:
    """Tests for lazy expiry."""

    def test_get_evicts_expired(self, store, clock):
        """Reading an expired session deletes it."""
        store.create("s1", clock.now + 300)
        clock.advance(300)

        assert store.get("s1") is None
        assert len(store) == 0

    def test_expiry_is_idempotent(self, store, clock):
        """Every read after expiry is absent, however many reads came before."""
        store.create("s1", clock.now + 300)
        for _ in range(5):
            assert store.get("s1") is not None
            clock.advance(10)

        clock.advance(300)
        for _ in range(5):
            assert store.get("s1") is None

    def test_expired_and_missing_look_the_same(self, store, clock):
        """Expired sessions are indistinguishable from unknown ones."""
        store.create("s1", clock.now + 1)
        clock.advance(2)
        assert store.get("s1") == store.get("never-existed")

    def test_sweep_expired(self, store, clock):
        """Sweep removes expired sessions and keeps live ones."""
        store.create("old", clock.now + 10)
        store.create("new", clock.now + 300)
        clock.advance(10)

        assert store.sweep_expired() == 1
        assert len(store) == 1
        assert store.get("new") is not None

    def test_unswept_sessions_still_counted(self, store, clock):
        """Expired sessions occupy memory until read or swept."""
        store.create("s1", clock.now + 1)
        clock.advance(5)
        assert len(store) == 1


class TestSessionStoreSetLinkOnce:
    """Tests for the check-and-set of the link."""

    def test_sets_link(self, store, clock):
        """First submission is stored."""
        store.create("s1", clock.now + 300)
        assert store.set_link_once("s1", "https://example.com") is True
        assert store.get("s1").link == "https://example.com"

    def test_first_writer_wins(self, store, clock):
        """Second submission is rejected and does not overwrite."""
        store.create("s1", clock.now + 300)
        assert store.set_link_once("s1", "https://first.example") is True
        assert store.set_link_once("s1", "https://second.example") is False
        assert store.get("s1").link == "https://first.example"

    def test_missing_session(self, store):
        """Cannot set a link on an unknown session."""
        assert store.set_link_once("missing", "https://example.com") is False

    def test_expired_session(self, store, clock):
        """Cannot set a link on an expired session."""
        store.create("s1", clock.now + 300)
        clock.advance(301)
        assert store.set_link_once("s1", "https://example.com") is False
        assert len(store) == 0

    def test_keeps_expiry(self, store, clock):
        """Setting the link does not extend the session."""
        store.create("s1", clock.now + 300)
        store.set_link_once("s1", "https://example.com")
        assert store.get("s1").expires_at == clock.now + 300


class TestSessionStoreDelete:
    """Tests for delete."""

    def test_delete(self, store, clock):
        """Deleted session is gone."""
        store.create("s1", clock.now + 300)
        store.delete("s1")
        assert store.get("s1") is None

    def test_delete_is_idempotent(self, store):
        """Deleting twice or deleting unknown IDs is fine."""
        store.delete("missing")
        store.delete("missing")
        assert len(store) == 0


class TestSessionStoreWatch:
    """Tests for change notification."""

    async def test_set_link_wakes_watcher(self, store, clock):
        """Watchers are notified when the link arrives."""
        store.create("s1", clock.now + 300)
        event = store.watch("s1")
        assert not event.is_set()

        store.set_link_once("s1", "https://example.com")
        await asyncio.wait_for(event.wait(), timeout=1)

    async def test_delete_wakes_watcher(self, store, clock):
        """Watchers are notified when the session is deleted."""
        store.create("s1", clock.now + 300)
        event = store.watch("s1")
        store.delete("s1")
        assert event.is_set()

    async def test_eviction_wakes_watcher(self, store, clock):
        """Watchers are notified when the session expires."""
        store.create("s1", clock.now + 10)
        event = store.watch("s1")
        clock.advance(10)
        store.sweep_expired()
        assert event.is_set()

    async def test_failed_set_does_not_wake(self, store, clock):
        """Rejected submissions do not notify."""
        store.create("s1", clock.now + 300)
        store.set_link_once("s1", "https://example.com")
        event = store.watch("s1")
        store.set_link_once("s1", "https://other.example")
        assert not event.is_set()

    async def test_unwatch(self, store, clock):
        """Unwatched events are no longer set."""
        store.create("s1", clock.now + 300)
        event = store.watch("s1")
        store.unwatch("s1", event)
        store.set_link_once("s1", "https://example.com")
        assert not event.is_set()

    async def test_unwatch_unknown(self, store):
        """Unwatching something never watched is a no-op."""
        store.unwatch("missing", asyncio.Event())

    async def test_watch_before_create(self, store, clock):
        """A watcher registered before creation still sees the link."""
        event = store.watch("s1")
        store.create("s1", clock.now + 300)
        store.set_link_once("s1", "https://example.com")
        assert event.is_set()

"""Tests for the in-memory session and token stores."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from conftest import make_credential

from polar_health.stores import SessionStore, TokenStore


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def test_session_lookup_returns_user():
    store = SessionStore()
    store.create("state-1", "alice")

    session = store.get("state-1")

    assert session is not None
    assert session.user_id == "alice"
    assert store.get("unknown") is None
    assert store.get(None) is None


def test_session_pop_is_single_use():
    store = SessionStore()
    store.create("state-1", "alice")

    first = store.pop("state-1")

    assert first is not None
    assert first.user_id == "alice"
    assert store.pop("state-1") is None
    assert store.get("state-1") is None
    assert len(store) == 0


def test_session_restore_keeps_original_expiry():
    clock = FakeClock()
    store = SessionStore(ttl=timedelta(minutes=10), clock=clock)
    store.create("state-1", "alice")

    clock.advance(minutes=8)
    store.restore(store.pop("state-1"))
    assert store.get("state-1") is not None

    clock.advance(minutes=3)
    assert store.pop("state-1") is None
    assert len(store) == 0


def test_session_expires_after_ttl():
    clock = FakeClock()
    store = SessionStore(ttl=timedelta(minutes=10), clock=clock)
    store.create("state-1", "alice")

    clock.advance(minutes=9)
    assert store.get("state-1") is not None

    clock.advance(minutes=2)
    assert store.get("state-1") is None
    assert len(store) == 0


def test_session_cleanup_removes_only_expired():
    clock = FakeClock()
    store = SessionStore(ttl=timedelta(minutes=10), clock=clock)
    store.create("old", "alice")
    clock.advance(minutes=11)
    store.create("fresh", "bob")

    assert store.cleanup() == 1
    assert store.get("fresh") is not None
    assert len(store) == 1


def test_token_store_overwrites_per_user():
    store = TokenStore()
    store.put(make_credential("alice", access_token="first"))
    store.put(make_credential("alice", access_token="second"))

    credential = store.get("alice")

    assert credential is not None
    assert credential.access_token == "second"
    assert len(store) == 1
    assert "alice" in store
    assert "bob" not in store


def test_token_store_evicts_expired_credentials():
    clock = FakeClock()
    store = TokenStore(clock=clock)
    store.put(make_credential("alice", expires_in=3600, acquired_at=clock()))

    clock.advance(minutes=59)
    assert store.get("alice") is not None

    clock.advance(minutes=2)
    assert store.get("alice") is None
    assert len(store) == 0


def test_credential_without_expiry_never_expires():
    clock = FakeClock()
    store = TokenStore(clock=clock)
    store.put(make_credential("alice", expires_in=None, acquired_at=clock()))

    clock.advance(days=365)

    assert store.get("alice") is not None


def test_authorization_header_uses_token_type():
    credential = make_credential(token_type="bearer", access_token="abc")
    assert credential.authorization_header == "bearer abc"

"""Storage failure tests — a sick database is a 503, never an auth failure.

Learn: the guard loads the caller's identity from storage on every
authenticated request. If that lookup times out or the connection drops, the
client must see a retryable 503 with Retry-After, not a 401 that would make it
throw away perfectly good tokens.
"""

import asyncio

import pytest
from sqlalchemy.exc import DisconnectionError, IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import TEST_PASSWORD, bearer, make_settings
from pasal.errors import ConflictError, TransientError
from pasal.storage.errors import translate_errors

STORAGE_FAILURES = [
    OperationalError("SELECT", {}, Exception("connection refused")),
    DisconnectionError("connection dropped"),
    PoolTimeoutError("QueuePool limit reached"),
]


def _assert_transient(r):
    assert r.status_code == 503, r.text
    assert r.json()["code"] == "transient"
    assert r.headers["retry-after"] == "1"
    assert "www-authenticate" not in r.headers


# ═══════════════════════════════════════════════════════════
# Through the API
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_slow_identity_lookup_is_503(app, client, make_user, monkeypatch):
    _, tokens = await make_user()
    app.state.settings = make_settings(storage_timeout_seconds=0.05)

    async def slow_execute(self, *args, **kwargs):
        await asyncio.sleep(5)

    monkeypatch.setattr(AsyncSession, "execute", slow_execute)

    r = await client.get("/api/v1/auth/me", headers=bearer(tokens))
    _assert_transient(r)


@pytest.mark.asyncio
@pytest.mark.parametrize("failure", STORAGE_FAILURES, ids=lambda e: type(e).__name__)
async def test_storage_outage_on_authenticated_route(client, make_user, monkeypatch, failure):
    _, tokens = await make_user()

    async def broken_execute(self, *args, **kwargs):
        raise failure

    monkeypatch.setattr(AsyncSession, "execute", broken_execute)

    r = await client.get("/api/v1/stores", headers=bearer(tokens))
    _assert_transient(r)


@pytest.mark.asyncio
async def test_storage_outage_during_login_is_not_invalid_credentials(client, monkeypatch):
    r = await client.post(
        "/api/v1/auth/register",
        json={"email": "ann@shop.io", "name": "Ann", "password": TEST_PASSWORD},
    )
    assert r.status_code == 201

    async def broken_execute(self, *args, **kwargs):
        raise STORAGE_FAILURES[0]

    monkeypatch.setattr(AsyncSession, "execute", broken_execute)

    r = await client.post(
        "/api/v1/auth/login", json={"email": "ann@shop.io", "password": TEST_PASSWORD}
    )
    _assert_transient(r)


# ═══════════════════════════════════════════════════════════
# translate_errors
# ═══════════════════════════════════════════════════════════


class RecordingSession:
    def __init__(self):
        self.rollbacks = 0

    async def rollback(self):
        self.rollbacks += 1


@pytest.mark.asyncio
@pytest.mark.parametrize("failure", STORAGE_FAILURES, ids=lambda e: type(e).__name__)
async def test_infrastructure_errors_become_transient(failure):
    db = RecordingSession()
    with pytest.raises(TransientError):
        async with translate_errors(db):
            raise failure
    assert db.rollbacks == 1


@pytest.mark.asyncio
async def test_integrity_error_becomes_conflict():
    db = RecordingSession()
    with pytest.raises(ConflictError, match="Subdomain already taken"):
        async with translate_errors(db, "Subdomain already taken"):
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
    assert db.rollbacks == 1


@pytest.mark.asyncio
async def test_other_errors_propagate_untouched():
    db = RecordingSession()
    with pytest.raises(ValueError):
        async with translate_errors(db):
            raise ValueError("bug")
    assert db.rollbacks == 0

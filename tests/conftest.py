"""Test fixtures — a fresh app on an in-memory SQLite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test builds its own app via create_app(test_settings). The engine
   points at ``sqlite+aiosqlite://`` with a StaticPool, so every session in
   the test shares one in-memory database.
2. The schema is created from the models before the test and dropped after.
3. Argon2 runs with the cheapest legal parameters so hashing doesn't
   dominate the suite.

Auth is NOT mocked: tests register and log in through the real endpoints,
so the guard chain runs exactly as in production.
"""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from pasal.config import Settings
from pasal.db.models import Base
from pasal.main import create_app

TEST_PASSWORD = "correct-horse-battery"


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite://",
        "jwt_secret": "test-access-secret",
        "refresh_token_secret": "test-refresh-secret",
        "argon2_time_cost": 1,
        "argon2_memory_cost": 8,
        "argon2_parallelism": 1,
        "environment": "test",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture()
def settings():
    return make_settings()


@pytest_asyncio.fixture()
async def app(settings):
    """App with its schema created; torn down after the test."""
    application = create_app(settings)
    engine = application.state.engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield application
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def db_session(app):
    """A session on the test database, for service-level tests."""
    async with app.state.session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def make_user(client):
    """Register a user over HTTP, log in, return (profile, login body).

    Usage: ``user, tokens = await make_user(role="MANAGER")``
    """

    async def _make(email=None, role="OWNER", password=TEST_PASSWORD, name="Test User"):
        email = email or f"user-{uuid.uuid4().hex[:8]}@shop.io"
        r = await client.post(
            "/api/v1/auth/register",
            json={"email": email, "name": name, "password": password, "role": role},
        )
        assert r.status_code == 201, r.text
        r = await client.post(
            "/api/v1/auth/login", json={"email": email, "password": password}
        )
        assert r.status_code == 200, r.text
        # Tests pass credentials explicitly; don't let cookies leak between users.
        client.cookies.clear()
        body = r.json()
        return body["user"], body

    return _make


def bearer(tokens: dict) -> dict:
    """Authorization header for a login/refresh response body."""
    return {"Authorization": f"Bearer {tokens['access_token']}"}

"""Tenant registry tests — race-safe registration at the service level."""

import asyncio
import uuid

import pytest
import pytest_asyncio

from conftest import make_settings
from pasal.db.models import Base, User
from pasal.errors import BadRequestError, ConflictError, NotFoundError
from pasal.main import create_app
from pasal.services.tenant_registry import TenantRegistry
from pasal.services.tenant_resolver import TenantContext
from pasal.storage.products import SqlProductStore
from pasal.storage.stores import SqlTenantStore


@pytest.fixture()
def registry(db_session):
    return TenantRegistry(
        SqlTenantStore(db_session, 5.0), SqlProductStore(db_session, 5.0)
    )


async def _owner(db_session) -> User:
    user = User(email=f"{uuid.uuid4().hex[:8]}@shop.io", name="Owner", password_hash="x")
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.mark.asyncio
async def test_race_lost_at_unique_constraint(registry, db_session, monkeypatch):
    """Both callers see the name as free; only one insert can win."""
    a = await _owner(db_session)
    b = await _owner(db_session)
    a_id, b_id = a.id, b.id

    async def always_free(subdomain):
        return 0

    monkeypatch.setattr(registry.stores, "count_by_subdomain", always_free)

    await registry.create_store(a_id, "acme", "A's shop")
    with pytest.raises(ConflictError):
        await registry.create_store(b_id, "acme", "B's shop")

    # The rollback expired everything in the session; reload.
    store = await registry.resolve_active_store("acme")
    assert store.owner_id == a_id


@pytest_asyncio.fixture()
async def file_app(tmp_path):
    """App on a file database, so each session gets its own connection."""
    application = create_app(
        make_settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
    )
    engine = application.state.engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield application
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_concurrent_registration_one_winner(file_app):
    session_factory = file_app.state.session_factory
    async with session_factory() as setup:
        owners = [await _owner(setup), await _owner(setup)]
        owner_ids = [o.id for o in owners]

    async def attempt(owner_id):
        async with session_factory() as db:
            registry = TenantRegistry(SqlTenantStore(db, 5.0), SqlProductStore(db, 5.0))
            try:
                store = await registry.create_store(owner_id, "acme", "Acme")
            except ConflictError:
                return "conflict"
            return store.owner_id

    outcomes = await asyncio.gather(*(attempt(oid) for oid in owner_ids))

    assert outcomes.count("conflict") == 1
    winner = next(o for o in outcomes if o != "conflict")
    async with session_factory() as db:
        registry = TenantRegistry(SqlTenantStore(db, 5.0), SqlProductStore(db, 5.0))
        assert (await registry.resolve_active_store("acme")).owner_id == winner


@pytest.mark.asyncio
async def test_create_normalizes_and_validates(registry, db_session):
    owner = await _owner(db_session)
    store = await registry.create_store(owner.id, "  MyShop ", "My Shop")
    assert store.subdomain == "myshop"

    with pytest.raises(BadRequestError):
        await registry.create_store(owner.id, "no", "Too short")
    with pytest.raises(ConflictError):
        await registry.create_store(owner.id, "support", "Reserved")


@pytest.mark.asyncio
async def test_store_for_request_without_tenant(registry):
    with pytest.raises(BadRequestError):
        await registry.store_for_request(TenantContext())


@pytest.mark.asyncio
async def test_owner_scoping(registry, db_session):
    a = await _owner(db_session)
    b = await _owner(db_session)
    store = await registry.create_store(a.id, "acme", "Acme")

    with pytest.raises(NotFoundError):
        await registry.get_for_owner(store.id, b.id)
    with pytest.raises(NotFoundError):
        await registry.update_for_owner(store.id, b.id, {"name": "Stolen"})
    with pytest.raises(NotFoundError):
        await registry.delete_for_owner(store.id, b.id)

    assert (await registry.get_for_owner(store.id, a.id)).name == "Acme"

"""Store API tests — registration, tenant lookup by Host, owner scoping."""

import uuid

import pytest

from conftest import bearer


async def _create_store(client, tokens, subdomain="acme", name="Acme Shop", **extra):
    return await client.post(
        "/api/v1/stores",
        json={"subdomain": subdomain, "name": name, **extra},
        headers=bearer(tokens),
    )


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_store(client, make_user):
    user, tokens = await make_user()
    r = await _create_store(client, tokens, description="Fresh bread")
    assert r.status_code == 201
    store = r.json()
    assert store["subdomain"] == "acme"
    assert store["owner_id"] == user["id"]
    assert store["is_active"] is True
    assert store["description"] == "Fresh bread"


@pytest.mark.asyncio
async def test_create_store_lowercases_subdomain(client, make_user):
    _, tokens = await make_user()
    r = await _create_store(client, tokens, subdomain="AcmeShop")
    assert r.status_code == 201
    assert r.json()["subdomain"] == "acmeshop"


@pytest.mark.asyncio
async def test_create_store_requires_auth(client):
    r = await client.post("/api/v1/stores", json={"subdomain": "acme", "name": "Acme"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_duplicate_subdomain_conflict(client, make_user):
    _, alice = await make_user()
    _, bob = await make_user()
    assert (await _create_store(client, alice)).status_code == 201
    r = await _create_store(client, bob)
    assert r.status_code == 409
    assert r.json()["code"] == "conflict"


@pytest.mark.asyncio
@pytest.mark.parametrize("reserved", ["www", "admin", "api", "dashboard", "login", "status"])
async def test_reserved_subdomain_conflict(client, make_user, reserved):
    _, tokens = await make_user()
    r = await _create_store(client, tokens, subdomain=reserved)
    assert r.status_code == 409


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", ["ab", "-acme", "acme-", "ac_me", "a" * 64])
async def test_invalid_subdomain_rejected(client, make_user, bad):
    _, tokens = await make_user()
    r = await _create_store(client, tokens, subdomain=bad)
    assert r.status_code == 422


# ═══════════════════════════════════════════════════════════
# Availability
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_check_subdomain(client, make_user):
    _, tokens = await make_user()
    await _create_store(client, tokens, subdomain="taken")

    async def available(name):
        r = await client.get(f"/api/v1/stores/check-subdomain/{name}")
        assert r.status_code == 200
        return r.json()["available"]

    assert await available("fresh") is True
    assert await available("taken") is False
    assert await available("TAKEN") is False
    assert await available("admin") is False


@pytest.mark.asyncio
async def test_check_subdomain_ignores_format(client, make_user):
    """Availability only answers reserved/taken; creation enforces the format."""
    _, tokens = await make_user()
    r = await client.get("/api/v1/stores/check-subdomain/ab")
    assert r.json() == {"subdomain": "ab", "available": True}

    assert (await _create_store(client, tokens, subdomain="ab")).status_code == 422


# ═══════════════════════════════════════════════════════════
# Tenant lookup (Host header)
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_get_store_by_host(client, make_user):
    _, tokens = await make_user()
    await _create_store(client, tokens)

    r = await client.get("/api/v1/store", headers={"host": "acme.pasal.com"})
    assert r.status_code == 200
    assert r.json()["subdomain"] == "acme"


@pytest.mark.asyncio
async def test_storefront_includes_owner_summary(client, make_user):
    user, tokens = await make_user(name="Ann Baker")
    await _create_store(client, tokens)

    r = await client.get("/api/v1/store", headers={"host": "acme.pasal.com"})
    assert r.json()["owner"] == {
        "id": user["id"],
        "name": "Ann Baker",
        "email": user["email"],
    }


@pytest.mark.asyncio
async def test_get_store_by_local_dev_host(client, make_user):
    _, tokens = await make_user()
    await _create_store(client, tokens)

    r = await client.get("/api/v1/store", headers={"host": "acme.pasal.local:3000"})
    assert r.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("host", ["pasal.com", "www.pasal.com", "localhost:7000", "127.0.0.1"])
async def test_get_store_without_tenant(client, host):
    r = await client.get("/api/v1/store", headers={"host": host})
    assert r.status_code == 400
    assert r.json()["code"] == "bad_request"


@pytest.mark.asyncio
async def test_get_unknown_store(client):
    r = await client.get("/api/v1/store", headers={"host": "ghost.pasal.com"})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_inactive_store_forbidden(client, make_user):
    _, tokens = await make_user()
    store = (await _create_store(client, tokens)).json()
    r = await client.patch(
        f"/api/v1/stores/{store['id']}", json={"is_active": False}, headers=bearer(tokens)
    )
    assert r.status_code == 200

    r = await client.get("/api/v1/store", headers={"host": "acme.pasal.com"})
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_tenant_only_from_host(client, make_user):
    """Query params and headers other than Host can't select a tenant."""
    _, tokens = await make_user()
    await _create_store(client, tokens)
    r = await client.get(
        "/api/v1/store",
        params={"subdomain": "acme"},
        headers={"host": "pasal.com", "X-Tenant-Id": "acme"},
    )
    assert r.status_code == 400


# ═══════════════════════════════════════════════════════════
# Owner-scoped CRUD
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_my_stores_only(client, make_user):
    _, alice = await make_user()
    _, bob = await make_user()
    await _create_store(client, alice, subdomain="alice-shop")
    await _create_store(client, bob, subdomain="bob-shop")

    r = await client.get("/api/v1/stores", headers=bearer(alice))
    assert r.status_code == 200
    assert [s["subdomain"] for s in r.json()] == ["alice-shop"]


@pytest.mark.asyncio
async def test_update_store(client, make_user):
    _, tokens = await make_user()
    store = (await _create_store(client, tokens)).json()
    r = await client.patch(
        f"/api/v1/stores/{store['id']}",
        json={"name": "Acme Bakery", "subdomain": "hijack"},
        headers=bearer(tokens),
    )
    assert r.status_code == 200
    updated = r.json()
    assert updated["name"] == "Acme Bakery"
    # Subdomain is immutable.
    assert updated["subdomain"] == "acme"


@pytest.mark.asyncio
async def test_foreign_store_is_not_found(client, make_user):
    """Another owner's store looks exactly like a missing one."""
    _, alice = await make_user()
    _, bob = await make_user()
    store = (await _create_store(client, alice)).json()
    url = f"/api/v1/stores/{store['id']}"

    assert (await client.get(url, headers=bearer(bob))).status_code == 404
    assert (
        await client.patch(url, json={"name": "Mine now"}, headers=bearer(bob))
    ).status_code == 404
    assert (await client.delete(url, headers=bearer(bob))).status_code == 404

    missing = f"/api/v1/stores/{uuid.uuid4()}"
    assert (await client.get(missing, headers=bearer(bob))).json() == (
        await client.get(url, headers=bearer(bob))
    ).json()

    # Alice's store survived.
    r = await client.get(url, headers=bearer(alice))
    assert r.status_code == 200
    assert r.json()["name"] == "Acme Shop"


@pytest.mark.asyncio
async def test_delete_store(client, make_user):
    _, tokens = await make_user()
    store = (await _create_store(client, tokens)).json()
    url = f"/api/v1/stores/{store['id']}"

    r = await client.delete(url, headers=bearer(tokens))
    assert r.status_code == 200
    assert (await client.get(url, headers=bearer(tokens))).status_code == 404
    # Subdomain is free again.
    r = await client.get("/api/v1/stores/check-subdomain/acme")
    assert r.json()["available"] is True


@pytest.mark.asyncio
async def test_owner_reads_include_product_count(client, make_user):
    _, tokens = await make_user()
    store = (await _create_store(client, tokens)).json()
    assert store["product_count"] == 0
    for name in ("Sourdough", "Rye"):
        r = await client.post(
            f"/api/v1/stores/{store['id']}/products",
            json={"name": name, "category": "bread"},
            headers=bearer(tokens),
        )
        assert r.status_code == 201

    r = await client.get(f"/api/v1/stores/{store['id']}", headers=bearer(tokens))
    assert r.json()["product_count"] == 2
    r = await client.get("/api/v1/stores", headers=bearer(tokens))
    assert [s["product_count"] for s in r.json()] == [2]
    r = await client.patch(
        f"/api/v1/stores/{store['id']}", json={"name": "Acme Bakery"}, headers=bearer(tokens)
    )
    assert r.json()["product_count"] == 2

"""Store API routes.

Learn: two audiences share this module:
- shoppers hit ``/store`` on a tenant host (``acme.pasal.com``); the store
  comes from the Host header, never from the URL or body
- owners manage their stores under ``/stores``; every lookup is scoped to the
  caller, so another owner's store id answers 404
"""

import uuid

from fastapi import APIRouter, Depends, Request

from pasal.auth.dependencies import get_tenant_registry, guard
from pasal.auth.guards import AUTHENTICATED, PUBLIC, Identity
from pasal.schemas.product import ProductRead
from pasal.schemas.store import (
    StoreCreate,
    StoreRead,
    StorefrontRead,
    StoreUpdate,
    SubdomainAvailability,
)
from pasal.services.tenant_registry import TenantRegistry
from pasal.services.tenant_resolver import NO_TENANT, TenantContext

router = APIRouter()


def _tenant(request: Request) -> TenantContext:
    return getattr(request.state, "tenant", NO_TENANT)


# ─── Tenant-scoped (Host header) ────────────────────────

@router.get(
    "/store", response_model=StorefrontRead, dependencies=[Depends(guard(PUBLIC))]
)
async def get_current_store(
    request: Request, registry: TenantRegistry = Depends(get_tenant_registry)
):
    """The active store addressed by the request's subdomain, with its owner."""
    return await registry.store_for_request(_tenant(request))


@router.get(
    "/store/products",
    response_model=list[ProductRead],
    dependencies=[Depends(guard(PUBLIC))],
)
async def get_current_store_products(
    request: Request, registry: TenantRegistry = Depends(get_tenant_registry)
):
    return await registry.products_for_request(_tenant(request))


# ─── Registration ───────────────────────────────────────

@router.get(
    "/stores/check-subdomain/{subdomain}",
    response_model=SubdomainAvailability,
    dependencies=[Depends(guard(PUBLIC))],
)
async def check_subdomain(
    subdomain: str, registry: TenantRegistry = Depends(get_tenant_registry)
):
    normalized = subdomain.strip().lower()
    return SubdomainAvailability(
        subdomain=normalized,
        available=await registry.is_subdomain_available(normalized),
    )


@router.post("/stores", response_model=StoreRead, status_code=201)
async def create_store(
    body: StoreCreate,
    identity: Identity = Depends(guard(AUTHENTICATED)),
    registry: TenantRegistry = Depends(get_tenant_registry),
):
    """Register a store. 409 if the subdomain is taken, reserved, or lost a race."""
    return await registry.create_store(
        owner_id=identity.user_id,
        subdomain=body.subdomain,
        name=body.name,
        description=body.description,
        logo=body.logo,
    )


# ─── Owner-scoped CRUD ──────────────────────────────────

@router.get("/stores", response_model=list[StoreRead])
async def list_my_stores(
    identity: Identity = Depends(guard(AUTHENTICATED)),
    registry: TenantRegistry = Depends(get_tenant_registry),
):
    return await registry.list_for_owner(identity.user_id)


@router.get("/stores/{store_id}", response_model=StoreRead)
async def get_store(
    store_id: uuid.UUID,
    identity: Identity = Depends(guard(AUTHENTICATED)),
    registry: TenantRegistry = Depends(get_tenant_registry),
):
    return await registry.get_for_owner(store_id, identity.user_id)


@router.patch("/stores/{store_id}", response_model=StoreRead)
async def update_store(
    store_id: uuid.UUID,
    body: StoreUpdate,
    identity: Identity = Depends(guard(AUTHENTICATED)),
    registry: TenantRegistry = Depends(get_tenant_registry),
):
    return await registry.update_for_owner(
        store_id, identity.user_id, body.changes()
    )


@router.delete("/stores/{store_id}")
async def delete_store(
    store_id: uuid.UUID,
    identity: Identity = Depends(guard(AUTHENTICATED)),
    registry: TenantRegistry = Depends(get_tenant_registry),
):
    await registry.delete_for_owner(store_id, identity.user_id)
    return {"deleted": True}

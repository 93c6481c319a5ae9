"""Product API routes.

Learn: role requirements are declared per route with RouteAccess:
- create / update → OWNER or MANAGER
- delete → OWNER only
- reads → public, except "my products"

A MANAGER hitting an OWNER-only route gets 403 from the guard chain before
any lookup happens. Ownership (your store, your product) is checked after,
in the service, and a miss there is 404.
"""

import uuid

from fastapi import APIRouter, Depends

from pasal.auth.dependencies import get_product_service, guard
from pasal.auth.guards import AUTHENTICATED, PUBLIC, Identity, RouteAccess
from pasal.db.models import Role
from pasal.schemas.product import (
    LegacyProductCreate,
    ProductCreate,
    ProductRead,
    ProductUpdate,
    ProductWithStoreRead,
)
from pasal.services.product_service import ProductService

router = APIRouter()

STAFF = RouteAccess.roles(Role.OWNER, Role.MANAGER)
OWNER_ONLY = RouteAccess.roles(Role.OWNER)


# ─── Store products ─────────────────────────────────────

@router.post(
    "/stores/{store_id}/products", response_model=ProductRead, status_code=201
)
async def create_store_product(
    store_id: uuid.UUID,
    body: ProductCreate,
    identity: Identity = Depends(guard(STAFF)),
    svc: ProductService = Depends(get_product_service),
):
    return await svc.create_product(
        owner_id=identity.user_id, store_id=store_id, **body.model_dump()
    )


@router.get(
    "/stores/{store_id}/products",
    response_model=list[ProductRead],
    dependencies=[Depends(guard(PUBLIC))],
)
async def list_store_products(
    store_id: uuid.UUID, svc: ProductService = Depends(get_product_service)
):
    return await svc.list_store_products(store_id)


# ─── Products ───────────────────────────────────────────

@router.get("/products/my-products", response_model=list[ProductWithStoreRead])
async def list_my_products(
    identity: Identity = Depends(guard(AUTHENTICATED)),
    svc: ProductService = Depends(get_product_service),
):
    return await svc.list_owner_products(identity.user_id)


@router.get(
    "/products/{product_id}",
    response_model=ProductWithStoreRead,
    dependencies=[Depends(guard(PUBLIC))],
)
async def get_product(
    product_id: uuid.UUID, svc: ProductService = Depends(get_product_service)
):
    return await svc.get_product(product_id)


@router.patch("/products/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: uuid.UUID,
    body: ProductUpdate,
    identity: Identity = Depends(guard(STAFF)),
    svc: ProductService = Depends(get_product_service),
):
    return await svc.update_product(product_id, identity.user_id, body.changes())


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: uuid.UUID,
    identity: Identity = Depends(guard(OWNER_ONLY)),
    svc: ProductService = Depends(get_product_service),
):
    await svc.delete_product(product_id, identity.user_id)
    return {"deleted": True}


# ─── Legacy endpoints ───────────────────────────────────

@router.post("/product", response_model=ProductRead, status_code=201)
async def create_product_legacy(
    body: LegacyProductCreate,
    identity: Identity = Depends(guard(STAFF)),
    svc: ProductService = Depends(get_product_service),
):
    fields = body.model_dump(exclude={"store_id"})
    return await svc.create_product(
        owner_id=identity.user_id, store_id=body.store_id, **fields
    )


@router.get(
    "/product",
    response_model=list[ProductWithStoreRead],
    dependencies=[Depends(guard(PUBLIC))],
)
async def list_all_products(svc: ProductService = Depends(get_product_service)):
    return await svc.list_products()

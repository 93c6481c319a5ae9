"""Tenant registry — subdomain registration and store lookup.

Learn: the availability check is advisory (it powers the signup form's
"is this name free?" call). What actually makes creation race-safe is the
UNIQUE constraint on ``stores.subdomain``: if two owners pass the check at
the same moment, exactly one insert wins and the other gets ConflictError.

Owner-scoped reads and writes never reveal whether a store exists for a
different owner. They answer NotFound either way.
"""

import uuid
from typing import Any, Optional

import structlog

from pasal.db.models import Product, Store
from pasal.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from pasal.services.tenant_resolver import (
    RESERVED_SUBDOMAINS,
    TenantContext,
    is_valid_subdomain,
)
from pasal.storage.products import SqlProductStore
from pasal.storage.stores import TenantStore

logger = structlog.get_logger()


class TenantRegistry:
    """Business logic for stores (tenants)."""

    def __init__(self, stores: TenantStore, products: SqlProductStore):
        self.stores = stores
        self.products = products

    # ─── Registration ───────────────────────────────────

    async def is_subdomain_available(self, candidate: str) -> bool:
        """False only for reserved or registered names; format is create_store's job."""
        subdomain = _normalize(candidate)
        if subdomain in RESERVED_SUBDOMAINS:
            return False
        return await self.stores.count_by_subdomain(subdomain) == 0

    async def create_store(
        self,
        owner_id: uuid.UUID,
        subdomain: str,
        name: str,
        description: Optional[str] = None,
        logo: Optional[str] = None,
    ) -> Store:
        subdomain = _normalize(subdomain)
        if not is_valid_subdomain(subdomain):
            raise BadRequestError(
                "Subdomain must be 3-63 lowercase letters, digits or hyphens"
            )
        if not await self.is_subdomain_available(subdomain):
            raise ConflictError("Subdomain already taken or reserved")

        store = await self.stores.insert(
            Store(
                subdomain=subdomain,
                name=name,
                description=description,
                logo=logo,
                owner_id=owner_id,
            )
        )
        logger.info(
            "tenant.created",
            store_id=str(store.id),
            subdomain=subdomain,
            owner_id=str(owner_id),
        )
        return store

    # ─── Public (tenant-scoped) lookup ──────────────────

    async def resolve_active_store(self, subdomain: str) -> Store:
        store = await self.stores.get_by_subdomain(_normalize(subdomain))
        if store is None:
            raise NotFoundError("Store not found")
        if not store.is_active:
            raise ForbiddenError("Store is not active")
        return store

    async def store_for_request(self, tenant: TenantContext) -> Store:
        if not tenant.is_tenant_scoped:
            raise BadRequestError("No store subdomain in request host")
        return await self.resolve_active_store(tenant.subdomain)

    async def list_store_products(self, subdomain: str) -> list[Product]:
        store = await self.resolve_active_store(subdomain)
        return await self.products.list_for_store(store.id)

    async def products_for_request(self, tenant: TenantContext) -> list[Product]:
        store = await self.store_for_request(tenant)
        return await self.products.list_for_store(store.id)

    # ─── Owner-scoped CRUD ──────────────────────────────

    async def list_for_owner(self, owner_id: uuid.UUID) -> list[Store]:
        return await self.stores.list_for_owner(owner_id)

    async def get_for_owner(self, store_id: uuid.UUID, owner_id: uuid.UUID) -> Store:
        store = await self.stores.get_by_id_for_owner(store_id, owner_id)
        if store is None:
            raise NotFoundError("Store not found")
        return store

    async def update_for_owner(
        self, store_id: uuid.UUID, owner_id: uuid.UUID, changes: dict[str, Any]
    ) -> Store:
        # Subdomain is immutable once registered.
        changes = {k: v for k, v in changes.items() if k != "subdomain"}
        store = await self.stores.update_for_owner(store_id, owner_id, changes)
        if store is None:
            raise NotFoundError("Store not found")
        logger.info("tenant.updated", store_id=str(store_id), fields=sorted(changes))
        return store

    async def delete_for_owner(self, store_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        if not await self.stores.delete_for_owner(store_id, owner_id):
            raise NotFoundError("Store not found")
        logger.info("tenant.deleted", store_id=str(store_id), owner_id=str(owner_id))


def _normalize(subdomain: str) -> str:
    return subdomain.strip().lower()

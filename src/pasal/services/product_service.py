"""Product service — CRUD for products inside a store.

Learn: role checks (OWNER/MANAGER) happen in the guard chain before we get
here. This layer only enforces ownership: the product's store must belong to
the caller, otherwise the product "doesn't exist" (NotFound).
"""

import uuid
from decimal import Decimal
from typing import Any, Optional

import structlog

from pasal.db.models import Product
from pasal.errors import NotFoundError
from pasal.storage.products import SqlProductStore
from pasal.storage.stores import TenantStore

logger = structlog.get_logger()


class ProductService:
    def __init__(self, products: SqlProductStore, stores: TenantStore):
        self.products = products
        self.stores = stores

    async def create_product(
        self,
        owner_id: uuid.UUID,
        store_id: uuid.UUID,
        name: str,
        category: str,
        description: Optional[str] = None,
        price: Decimal = Decimal("0"),
    ) -> Product:
        store = await self.stores.get_by_id_for_owner(store_id, owner_id)
        if store is None:
            raise NotFoundError("Store not found")
        product = await self.products.insert(
            Product(
                store_id=store.id,
                name=name,
                category=category,
                description=description,
                price=price,
            )
        )
        logger.info("product.created", product_id=str(product.id), store_id=str(store_id))
        return product

    async def get_product(self, product_id: uuid.UUID) -> Product:
        product = await self.products.get_by_id(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    async def list_products(self) -> list[Product]:
        return await self.products.list_all()

    async def list_store_products(self, store_id: uuid.UUID) -> list[Product]:
        return await self.products.list_for_store(store_id)

    async def list_owner_products(self, owner_id: uuid.UUID) -> list[Product]:
        return await self.products.list_for_owner(owner_id)

    async def update_product(
        self, product_id: uuid.UUID, owner_id: uuid.UUID, changes: dict[str, Any]
    ) -> Product:
        product = await self.products.update_for_owner(product_id, owner_id, changes)
        if product is None:
            raise NotFoundError("Product not found")
        logger.info("product.updated", product_id=str(product_id), fields=sorted(changes))
        return product

    async def delete_product(self, product_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        if not await self.products.delete_for_owner(product_id, owner_id):
            raise NotFoundError("Product not found")
        logger.info("product.deleted", product_id=str(product_id))

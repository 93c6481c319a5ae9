"""Product data access.

Learn: a product is owned through its store, so owner-scoped queries join
``stores`` and filter on ``stores.owner_id``. Same rule as the tenant store:
someone else's product is indistinguishable from a missing one.

Reads that leave the store page (single product, all products, "my
products") eager-load ``Product.store`` so the response can name the store;
async sessions cannot lazy-load it later.
"""

import uuid
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pasal.db.models import Product, Store
from pasal.deadline import bounded
from pasal.storage.errors import translate_errors


class SqlProductStore:
    def __init__(self, db: AsyncSession, timeout: float):
        self.db = db
        self.timeout = timeout

    async def insert(self, product: Product) -> Product:
        async with translate_errors(self.db):
            self.db.add(product)
            await bounded(self.db.commit(), self.timeout, "products.insert")
            await bounded(self.db.refresh(product), self.timeout, "products.insert")
        return product

    async def get_by_id(self, product_id: uuid.UUID) -> Optional[Product]:
        q = (
            select(Product)
            .options(selectinload(Product.store))
            .where(Product.id == product_id)
        )
        return (await self._execute(q, "products.get")).scalars().first()

    async def get_by_id_for_owner(
        self, product_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Optional[Product]:
        q = (
            select(Product)
            .join(Store, Product.store_id == Store.id)
            .where(Product.id == product_id, Store.owner_id == owner_id)
        )
        return (await self._execute(q, "products.get_for_owner")).scalars().first()

    async def list_all(self) -> list[Product]:
        q = (
            select(Product)
            .options(selectinload(Product.store))
            .order_by(Product.created_at.desc())
        )
        return list((await self._execute(q, "products.list")).scalars().all())

    async def list_for_store(self, store_id: uuid.UUID) -> list[Product]:
        q = (
            select(Product)
            .where(Product.store_id == store_id)
            .order_by(Product.created_at.desc())
        )
        return list((await self._execute(q, "products.list_for_store")).scalars().all())

    async def list_for_owner(self, owner_id: uuid.UUID) -> list[Product]:
        q = (
            select(Product)
            .options(selectinload(Product.store))
            .join(Store, Product.store_id == Store.id)
            .where(Store.owner_id == owner_id)
            .order_by(Product.created_at.desc())
        )
        return list((await self._execute(q, "products.list_for_owner")).scalars().all())

    async def update_for_owner(
        self, product_id: uuid.UUID, owner_id: uuid.UUID, changes: dict[str, Any]
    ) -> Optional[Product]:
        product = await self.get_by_id_for_owner(product_id, owner_id)
        if product is None:
            return None
        for field, value in changes.items():
            setattr(product, field, value)
        async with translate_errors(self.db):
            await bounded(self.db.commit(), self.timeout, "products.update")
            await bounded(self.db.refresh(product), self.timeout, "products.update")
        return product

    async def delete_for_owner(self, product_id: uuid.UUID, owner_id: uuid.UUID) -> bool:
        product = await self.get_by_id_for_owner(product_id, owner_id)
        if product is None:
            return False
        async with translate_errors(self.db):
            await self.db.delete(product)
            await bounded(self.db.commit(), self.timeout, "products.delete")
        return True

    async def _execute(self, q, operation: str):
        async with translate_errors(self.db):
            return await bounded(self.db.execute(q), self.timeout, operation)

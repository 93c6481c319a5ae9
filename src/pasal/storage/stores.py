"""Tenant store — persistence for stores (tenants).

Learn: ownership is part of every owner-scoped query's WHERE clause, not a
check done after loading the row. A store belonging to someone else is simply
"not there" for the caller, which is why the registry reports NotFound for it
instead of Forbidden.

``insert`` relies on the UNIQUE constraint on ``stores.subdomain``; the
constraint violation is translated to ConflictError by ``translate_errors``.

Owner-scoped reads attach ``product_count`` to each store from a correlated
count subquery; the public subdomain lookup eager-loads the owner.
"""

import uuid
from typing import Any, Optional, Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pasal.db.models import Product, Store
from pasal.deadline import bounded
from pasal.storage.errors import translate_errors


class TenantStore(Protocol):
    async def get_by_subdomain(self, subdomain: str) -> Optional[Store]: ...

    async def count_by_subdomain(self, subdomain: str) -> int: ...

    async def insert(self, store: Store) -> Store: ...

    async def get_by_id_for_owner(
        self, store_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Optional[Store]: ...

    async def update_for_owner(
        self, store_id: uuid.UUID, owner_id: uuid.UUID, changes: dict[str, Any]
    ) -> Optional[Store]: ...

    async def delete_for_owner(self, store_id: uuid.UUID, owner_id: uuid.UUID) -> bool: ...

    async def list_for_owner(self, owner_id: uuid.UUID) -> list[Store]: ...


class SqlTenantStore:
    """TenantStore backed by the ``stores`` table."""

    def __init__(self, db: AsyncSession, timeout: float):
        self.db = db
        self.timeout = timeout

    async def get_by_subdomain(self, subdomain: str) -> Optional[Store]:
        async with translate_errors(self.db):
            result = await bounded(
                self.db.execute(
                    select(Store)
                    .options(selectinload(Store.owner))
                    .where(Store.subdomain == subdomain)
                ),
                self.timeout,
                "stores.get_by_subdomain",
            )
        return result.scalars().first()

    async def count_by_subdomain(self, subdomain: str) -> int:
        q = select(func.count()).select_from(Store).where(Store.subdomain == subdomain)
        async with translate_errors(self.db):
            result = await bounded(
                self.db.execute(q), self.timeout, "stores.count_by_subdomain"
            )
        return result.scalar_one()

    async def insert(self, store: Store) -> Store:
        async with translate_errors(self.db, "Subdomain already taken"):
            self.db.add(store)
            await bounded(self.db.commit(), self.timeout, "stores.insert")
            await bounded(self.db.refresh(store), self.timeout, "stores.insert")
        return store

    async def get_by_id_for_owner(
        self, store_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Optional[Store]:
        q = _with_product_count(
            select(Store).where(Store.id == store_id, Store.owner_id == owner_id)
        )
        async with translate_errors(self.db):
            result = await bounded(
                self.db.execute(q), self.timeout, "stores.get_for_owner"
            )
        stores = _attach_product_counts(result)
        return stores[0] if stores else None

    async def update_for_owner(
        self, store_id: uuid.UUID, owner_id: uuid.UUID, changes: dict[str, Any]
    ) -> Optional[Store]:
        store = await self.get_by_id_for_owner(store_id, owner_id)
        if store is None:
            return None
        for field, value in changes.items():
            setattr(store, field, value)
        async with translate_errors(self.db):
            await bounded(self.db.commit(), self.timeout, "stores.update")
            await bounded(self.db.refresh(store), self.timeout, "stores.update")
        return store

    async def delete_for_owner(self, store_id: uuid.UUID, owner_id: uuid.UUID) -> bool:
        q = delete(Store).where(Store.id == store_id, Store.owner_id == owner_id)
        async with translate_errors(self.db):
            result = await bounded(self.db.execute(q), self.timeout, "stores.delete")
            await bounded(self.db.commit(), self.timeout, "stores.delete")
        return result.rowcount > 0

    async def list_for_owner(self, owner_id: uuid.UUID) -> list[Store]:
        q = _with_product_count(
            select(Store)
            .where(Store.owner_id == owner_id)
            .order_by(Store.created_at.desc())
        )
        async with translate_errors(self.db):
            result = await bounded(
                self.db.execute(q), self.timeout, "stores.list_for_owner"
            )
        return _attach_product_counts(result)


def _with_product_count(q):
    count = (
        select(func.count(Product.id))
        .where(Product.store_id == Store.id)
        .correlate(Store)
        .scalar_subquery()
    )
    return q.add_columns(count)


def _attach_product_counts(result) -> list[Store]:
    stores = []
    for store, count in result.all():
        store.product_count = count
        stores.append(store)
    return stores

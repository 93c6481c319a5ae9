"""Pydantic schemas for products."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)


class LegacyProductCreate(ProductCreate):
    """``POST /product`` takes the store in the body."""
    store_id: uuid.UUID


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)

    def changes(self) -> dict:
        return {
            k: v
            for k, v in self.model_dump(exclude_unset=True).items()
            if v is not None or k == "description"
        }


class ProductRead(BaseModel):
    id: uuid.UUID
    store_id: uuid.UUID
    name: str
    category: str
    description: Optional[str] = None
    price: float
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StoreSummary(BaseModel):
    id: uuid.UUID
    name: str
    subdomain: str

    model_config = {"from_attributes": True}


class ProductWithStoreRead(ProductRead):
    """Product plus the store it is listed in, for reads outside a store page."""
    store: StoreSummary

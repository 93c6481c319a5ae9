"""Pydantic schemas for stores (tenants).

Learn: StoreUpdate has no ``subdomain`` field. A store's address is fixed
once registered; anything sent under that key is ignored.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

SUBDOMAIN_REGEX = r"^[a-z0-9]([a-z0-9-]{1,61}[a-z0-9])?$"


class StoreCreate(BaseModel):
    subdomain: str = Field(..., min_length=3, max_length=63, pattern=SUBDOMAIN_REGEX)
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    logo: Optional[str] = Field(None, max_length=500)

    @field_validator("subdomain", mode="before")
    @classmethod
    def normalize_subdomain(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class StoreUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    logo: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None

    def changes(self) -> dict:
        """Fields the client sent. Only description and logo can be cleared."""
        return {
            k: v
            for k, v in self.model_dump(exclude_unset=True).items()
            if v is not None or k in ("description", "logo")
        }


class OwnerSummary(BaseModel):
    id: uuid.UUID
    name: str
    email: str

    model_config = {"from_attributes": True}


class StoreBase(BaseModel):
    id: uuid.UUID
    subdomain: str
    name: str
    description: Optional[str] = None
    logo: Optional[str] = None
    owner_id: uuid.UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StoreRead(StoreBase):
    """Owner view. ``product_count`` is filled in by the owner-scoped queries."""
    product_count: int = 0


class StorefrontRead(StoreBase):
    """Public view served on the store's own host."""
    owner: OwnerSummary


class SubdomainAvailability(BaseModel):
    subdomain: str
    available: bool

"""Pydantic schemas for registration, login and tokens."""

import uuid
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from pasal.db.models import Provider, Role


class RegisterRequest(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6, max_length=256)
    role: Role = Role.OWNER


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    """Body is optional: the token may come from a header or cookie instead."""
    refresh_token: Optional[str] = None


class UserRead(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    role: Role
    provider: Provider

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(TokenResponse):
    user: UserRead

"""Credential store — read/write access to user records.

Learn: the session manager only talks to the ``CredentialStore`` protocol;
``SqlCredentialStore`` is the SQLAlchemy implementation used in production
and tests. Every call is bounded by the storage deadline, and unique-email
violations surface as ConflictError.
"""

import uuid
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pasal.db.models import Provider, Role, User
from pasal.deadline import bounded
from pasal.storage.errors import translate_errors


class CredentialStore(Protocol):
    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]: ...

    async def create_local_user(
        self, email: str, name: str, password_hash: str, role: Role
    ) -> User: ...

    async def set_refresh_token_hash(
        self, user_id: uuid.UUID, token_hash: Optional[str]
    ) -> bool: ...

    async def set_password_hash(self, user_id: uuid.UUID, password_hash: str) -> bool: ...


class SqlCredentialStore:
    """CredentialStore backed by the ``users`` table."""

    def __init__(self, db: AsyncSession, timeout: float):
        self.db = db
        self.timeout = timeout

    async def get_user_by_email(self, email: str) -> Optional[User]:
        async with translate_errors(self.db):
            result = await bounded(
                self.db.execute(select(User).where(User.email == email)),
                self.timeout,
                "users.get_by_email",
            )
        return result.scalars().first()

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        async with translate_errors(self.db):
            result = await bounded(
                self.db.execute(select(User).where(User.id == user_id)),
                self.timeout,
                "users.get_by_id",
            )
        return result.scalars().first()

    async def create_local_user(
        self, email: str, name: str, password_hash: str, role: Role
    ) -> User:
        user = User(
            email=email,
            name=name,
            password_hash=password_hash,
            role=role,
            provider=Provider.LOCAL,
        )
        async with translate_errors(self.db, "User with given email already exists"):
            self.db.add(user)
            await bounded(self.db.commit(), self.timeout, "users.create")
            await bounded(self.db.refresh(user), self.timeout, "users.create")
        return user

    async def set_refresh_token_hash(
        self, user_id: uuid.UUID, token_hash: Optional[str]
    ) -> bool:
        """Overwrite (or clear, with None) the user's refresh-token hash.

        Returns False when the user does not exist.
        """
        user = await self.get_user_by_id(user_id)
        if user is None:
            return False
        user.refresh_token_hash = token_hash
        async with translate_errors(self.db):
            await bounded(self.db.commit(), self.timeout, "users.set_refresh_hash")
        return True

    async def set_password_hash(self, user_id: uuid.UUID, password_hash: str) -> bool:
        user = await self.get_user_by_id(user_id)
        if user is None:
            return False
        user.password_hash = password_hash
        async with translate_errors(self.db):
            await bounded(self.db.commit(), self.timeout, "users.set_password_hash")
        return True

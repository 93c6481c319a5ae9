"""Session manager — register, login, refresh, logout.

Learn: a session is an access/refresh token pair. The server keeps exactly one
thing per user: the argon2 hash of the *current* refresh token.

- login   → verify password, issue pair, overwrite the stored hash
- refresh → presented token must match the stored hash; rotate the pair
- logout  → null the hash; every outstanding refresh token dies with it

Because refresh overwrites the hash, a refresh token that has been rotated
away (or replayed after logout) no longer matches and is rejected. Two
concurrent refreshes are last-write-wins: only the pair whose hash landed
last stays usable.

Unknown email and wrong password raise the same error with the same message.
"""

import uuid
from dataclasses import dataclass

import structlog

from pasal.auth.guards import Identity
from pasal.auth.jwt import TokenPair, TokenService
from pasal.auth.password import SecretHasher
from pasal.db.models import Provider, Role, User
from pasal.errors import (
    ConflictError,
    ExternalProviderOnlyError,
    InvalidCredentialsError,
    UnauthorizedError,
)
from pasal.storage.users import CredentialStore

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid email or password"


@dataclass(frozen=True)
class UserProfile:
    """The public view of a user. Never carries a hash."""

    id: uuid.UUID
    email: str
    name: str
    role: Role
    provider: Provider

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            provider=user.provider,
        )


@dataclass(frozen=True)
class LoginResult:
    profile: UserProfile
    tokens: TokenPair


class SessionManager:
    """Business logic for the session lifecycle."""

    def __init__(
        self, users: CredentialStore, hasher: SecretHasher, tokens: TokenService
    ):
        self.users = users
        self.hasher = hasher
        self.tokens = tokens

    # ─── Registration ───────────────────────────────────

    async def register(
        self, email: str, name: str, password: str, role: Role = Role.OWNER
    ) -> UserProfile:
        """Create a LOCAL user. ConflictError if the email is taken."""
        if await self.users.get_user_by_email(email) is not None:
            raise ConflictError("User with given email already exists")
        password_hash = await self.hasher.hash(password)
        # The unique constraint still decides if two registrations race.
        user = await self.users.create_local_user(email, name, password_hash, role)
        logger.info("session.registered", user_id=str(user.id), role=user.role.value)
        return UserProfile.from_user(user)

    # ─── Login ──────────────────────────────────────────

    async def login(self, email: str, password: str) -> LoginResult:
        user = await self.users.get_user_by_email(email)
        if user is None:
            # Burn a hash so unknown emails take as long as wrong passwords.
            await self.hasher.hash(password)
            logger.info("session.login_failed", reason="invalid_credentials")
            raise InvalidCredentialsError(INVALID_CREDENTIALS)

        if user.provider != Provider.LOCAL or user.password_hash is None:
            logger.info(
                "session.login_failed",
                reason="external_provider",
                user_id=str(user.id),
            )
            raise ExternalProviderOnlyError(
                "This account signs in through an external provider"
            )

        if not await self.hasher.verify(user.password_hash, password):
            logger.info("session.login_failed", reason="invalid_credentials")
            raise InvalidCredentialsError(INVALID_CREDENTIALS)

        if self.hasher.needs_rehash(user.password_hash):
            await self.users.set_password_hash(user.id, await self.hasher.hash(password))
            logger.info("session.password_rehashed", user_id=str(user.id))

        tokens = await self._start_session(user.id)
        logger.info("session.login", user_id=str(user.id))
        return LoginResult(profile=UserProfile.from_user(user), tokens=tokens)

    # ─── Refresh ────────────────────────────────────────

    async def refresh(self, user_id: str, presented_refresh_token: str) -> TokenPair:
        """Rotate the pair. The caller has already verified the token's signature."""
        uid = _parse_user_id(user_id)
        user = await self.users.get_user_by_id(uid)
        if user is None or user.refresh_token_hash is None:
            logger.info("session.refresh_denied", user_id=user_id, reason="no_session")
            raise UnauthorizedError("Session expired, please sign in again")

        if not await self.hasher.verify(user.refresh_token_hash, presented_refresh_token):
            logger.warning("session.refresh_denied", user_id=user_id, reason="stale_token")
            raise UnauthorizedError("Refresh token is no longer valid")

        tokens = await self._start_session(user.id)
        logger.info("session.refreshed", user_id=user_id)
        return tokens

    # ─── Logout ─────────────────────────────────────────

    async def logout(self, user_id: str) -> None:
        """Revoke the session. Safe to call twice or for a vanished user."""
        uid = _parse_user_id(user_id)
        await self.users.set_refresh_token_hash(uid, None)
        logger.info("session.logout", user_id=user_id)

    # ─── Lookups ────────────────────────────────────────

    async def current_user(self, user_id: str) -> UserProfile:
        return UserProfile.from_user(await self._require_user(user_id))

    async def load_identity(self, user_id: str) -> Identity:
        """Identity lookup used by the guard chain."""
        user = await self._require_user(user_id)
        return Identity(user_id=user.id, role=user.role)

    async def _require_user(self, user_id: str) -> User:
        user = await self.users.get_user_by_id(_parse_user_id(user_id))
        if user is None:
            raise UnauthorizedError("User no longer exists")
        return user

    async def _start_session(self, user_id: uuid.UUID) -> TokenPair:
        tokens = self.tokens.issue_pair(str(user_id))
        refresh_hash = await self.hasher.hash(tokens.refresh_token)
        await self.users.set_refresh_token_hash(user_id, refresh_hash)
        return tokens


def _parse_user_id(user_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(user_id)
    except (ValueError, TypeError):
        raise UnauthorizedError("Invalid token subject")

"""Guard chain — public check, then authentication, then role.

Learn: every API route declares a ``RouteAccess`` descriptor. The chain reads
it and runs the three checks in a fixed order:

1. public → stop, no identity is attached
2. authenticate → a verified access token resolves to an ``Identity``
3. role → the identity's role must be in ``required_roles`` (empty = any)

The chain is built once at startup and holds no per-request state. The
FastAPI wiring lives in ``pasal.auth.dependencies``.
"""

import uuid
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping, Optional

import structlog

from pasal.auth.jwt import TokenKind, TokenService
from pasal.db.models import Role
from pasal.errors import ForbiddenError, UnauthorizedError

logger = structlog.get_logger()

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


@dataclass(frozen=True)
class RouteAccess:
    """Per-route access descriptor."""

    public: bool = False
    required_roles: frozenset[Role] = field(default_factory=frozenset)

    @classmethod
    def roles(cls, *roles: Role) -> "RouteAccess":
        return cls(required_roles=frozenset(roles))


PUBLIC = RouteAccess(public=True)
AUTHENTICATED = RouteAccess()


@dataclass(frozen=True)
class Identity:
    """Who is making the request."""

    user_id: uuid.UUID
    role: Role


IdentityLoader = Callable[[str], Awaitable[Identity]]


def extract_credential(
    authorization: Optional[str], cookies: Mapping[str, str]
) -> Optional[str]:
    """Bearer header first, then the access-token cookie."""
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return cookies.get(ACCESS_TOKEN_COOKIE) or None


class GuardChain:
    def __init__(self, token_service: TokenService):
        self._tokens = token_service

    async def evaluate(
        self,
        access: RouteAccess,
        credential: Optional[str],
        load_identity: IdentityLoader,
    ) -> Optional[Identity]:
        """Run the chain for one request.

        Returns None for public routes, the caller's Identity otherwise.
        Raises UnauthorizedError (no/invalid credential, vanished user) or
        ForbiddenError (role not allowed).
        """
        if access.public:
            return None

        if not credential:
            raise UnauthorizedError("Authentication required")
        subject = self._tokens.verify(credential, TokenKind.ACCESS)
        identity = await load_identity(subject)

        if access.required_roles and identity.role not in access.required_roles:
            logger.info(
                "guard.denied",
                user_id=str(identity.user_id),
                role=identity.role.value,
                required=sorted(r.value for r in access.required_roles),
            )
            raise ForbiddenError("Insufficient role for this operation")
        return identity

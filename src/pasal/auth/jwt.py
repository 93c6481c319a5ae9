"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
- Access token: short-lived (minutes), signed with ``jwt_secret``
- Refresh token: long-lived (days), signed with ``refresh_token_secret``

Both carry the same payload shape: ``sub`` (user id), ``type``, ``jti``,
``iat``, ``exp``. The random ``jti`` makes every issued token unique, so a
rotated refresh token can never collide with the one it replaces even when
both are minted within the same second.
"""

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from pasal.config import Settings
from pasal.errors import UnauthorizedError


class InvalidTokenError(UnauthorizedError):
    """Raised when a token fails signature, expiry, or shape checks."""


class TokenKind(str, enum.Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    """Issues and verifies access/refresh tokens with separate secrets and TTLs."""

    def __init__(self, settings: Settings):
        self._algorithm = settings.jwt_algorithm
        self._secrets = {
            TokenKind.ACCESS: settings.jwt_secret,
            TokenKind.REFRESH: settings.refresh_token_secret,
        }
        self._ttls = {
            TokenKind.ACCESS: settings.access_token_ttl,
            TokenKind.REFRESH: settings.refresh_token_ttl,
        }

    @property
    def access_ttl(self) -> timedelta:
        return self._ttls[TokenKind.ACCESS]

    @property
    def refresh_ttl(self) -> timedelta:
        return self._ttls[TokenKind.REFRESH]

    def issue_access_token(self, subject: str) -> str:
        """Create a JWT access token."""
        return self._issue(subject, TokenKind.ACCESS)

    def issue_refresh_token(self, subject: str) -> str:
        """Create a JWT refresh token."""
        return self._issue(subject, TokenKind.REFRESH)

    def issue_pair(self, subject: str) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(subject),
            refresh_token=self.issue_refresh_token(subject),
        )

    def verify(self, token: str, kind: TokenKind) -> str:
        """Verify a token of the given kind and return its subject.

        Raises InvalidTokenError on a bad signature, expiry, malformed
        token, missing subject, or a ``type`` claim that doesn't match.
        """
        if not token:
            raise InvalidTokenError("Token missing")
        try:
            payload = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        if payload.get("type") != kind.value:
            raise InvalidTokenError(f"Wrong token type, expected {kind.value}")
        subject = payload["sub"]
        if not isinstance(subject, str) or not subject:
            raise InvalidTokenError("Invalid token: bad subject")
        return subject

    def _issue(self, subject: str, kind: TokenKind) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": subject,
            "type": kind.value,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + self._ttls[kind],
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=self._algorithm)

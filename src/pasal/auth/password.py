"""Secret hashing — passwords and refresh tokens.

Learn: Uses argon2id (memory-hard, salted). The salt is embedded in the
encoded hash, so hashing the same input twice gives two different strings,
and verification compares in constant time. The same primitive covers two
logical purposes: user passwords and the server-side trace of the current
refresh token.

Hashing is CPU-bound, so it runs in a worker thread under a deadline to keep
the event loop free.

Legacy bcrypt hashes ($2a$/$2b$/$2y$) are still verified and are
auto-upgraded to argon2id on successful login.
"""

import asyncio

import bcrypt
from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from pasal.config import Settings
from pasal.deadline import bounded

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


class SecretHasher:
    """Argon2id hashing with a bcrypt read path for legacy hashes."""

    def __init__(self, settings: Settings):
        self._hasher = PasswordHasher(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
            type=Type.ID,
        )
        self._timeout = settings.hash_timeout_seconds

    async def hash(self, secret: str) -> str:
        """Hash a secret. Raises TransientError if the deadline passes."""
        return await bounded(
            asyncio.to_thread(self._hasher.hash, secret),
            self._timeout,
            "hash",
        )

    async def verify(self, hashed: str, candidate: str) -> bool:
        """Check ``candidate`` against ``hashed``. Mismatch is False, not an error."""
        if not hashed:
            return False
        return await bounded(
            asyncio.to_thread(self._verify_sync, hashed, candidate),
            self._timeout,
            "verify",
        )

    def needs_rehash(self, hashed: str) -> bool:
        """Legacy bcrypt hashes and argon2 hashes with stale parameters."""
        if _is_legacy_hash(hashed):
            return True
        try:
            return self._hasher.check_needs_rehash(hashed)
        except InvalidHashError:
            return False

    def _verify_sync(self, hashed: str, candidate: str) -> bool:
        if _is_legacy_hash(hashed):
            return _verify_legacy(hashed, candidate)
        try:
            return self._hasher.verify(hashed, candidate)
        except (VerifyMismatchError, VerificationError, InvalidHashError):
            return False


def _is_legacy_hash(hashed: str) -> bool:
    return hashed.startswith(_BCRYPT_PREFIXES)


def _verify_legacy(hashed: str, candidate: str) -> bool:
    """Verify a bcrypt hash (bcrypt only looks at the first 72 bytes)."""
    try:
        return bcrypt.checkpw(candidate.encode("utf-8")[:72], hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False

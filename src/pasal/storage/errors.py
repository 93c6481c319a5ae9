"""Translate SQLAlchemy failures into the application error taxonomy.

Learn: a unique-constraint violation is a business outcome (someone already
has that email / subdomain) and becomes ConflictError. Connection drops and
timeouts are infrastructure hiccups and become TransientError (retryable).
Anything else is a bug and propagates untouched.
"""

from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import DisconnectionError, IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from pasal.errors import ConflictError, TransientError

logger = structlog.get_logger()


@asynccontextmanager
async def translate_errors(db: AsyncSession, conflict_message: str = "Already exists"):
    """Run a unit of storage work; roll back and re-raise as a typed error."""
    try:
        yield
    except IntegrityError as e:
        await db.rollback()
        logger.info("storage.conflict", error=str(e.orig))
        raise ConflictError(conflict_message) from e
    except (OperationalError, DisconnectionError, PoolTimeoutError) as e:
        await db.rollback()
        logger.warning("storage.unavailable", error=str(e))
        raise TransientError("Storage unavailable, try again") from e

"""Bounded awaits.

Hashing and storage calls run under a deadline. When the deadline passes the
caller gets a ``TransientError`` (503), so a slow database is never reported
to clients as an authentication failure.
"""

import asyncio
from typing import Awaitable, TypeVar

import structlog

from pasal.errors import TransientError

logger = structlog.get_logger()

T = TypeVar("T")


async def bounded(awaitable: Awaitable[T], timeout: float, operation: str) -> T:
    """Await ``awaitable`` for at most ``timeout`` seconds."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("deadline.exceeded", operation=operation, timeout=timeout)
        raise TransientError(f"{operation} timed out, try again")

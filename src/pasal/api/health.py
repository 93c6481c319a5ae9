"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and the
database answers within the storage deadline. Degraded, not 5xx, when the
database is down, so load balancers can tell "up but sick" from "gone".
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from pasal import __version__
from pasal.auth.dependencies import guard
from pasal.auth.guards import PUBLIC
from pasal.deadline import bounded
from pasal.errors import TransientError

router = APIRouter()


async def _ping(engine) -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


@router.get("/health", dependencies=[Depends(guard(PUBLIC))])
async def health_check(request: Request):
    """Check server health and database connectivity."""
    state = request.app.state
    checks = {"server": "ok", "version": __version__}

    try:
        await bounded(
            _ping(state.engine), state.settings.storage_timeout_seconds, "health.db"
        )
        checks["database"] = "ok"
    except (SQLAlchemyError, OSError, TransientError) as e:
        checks["database"] = f"error: {e}"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks}

"""FastAPI application factory.

Learn: App factory pattern — create_app(settings) returns a configured
FastAPI instance. Everything long-lived is built here exactly once and
parked on ``app.state``:

- engine / session_factory → one AsyncSession per request (``get_db``)
- token_service, hasher, guard_chain, tenant_resolver → immutable, shared

Lifespan only disposes the engine at shutdown; nothing is lazily created
during a request.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pasal import __version__
from pasal.api import api_router
from pasal.api.errors import register_exception_handlers
from pasal.auth.dependencies import ensure_routes_guarded
from pasal.auth.guards import GuardChain
from pasal.auth.jwt import TokenService
from pasal.auth.password import SecretHasher
from pasal.config import Settings
from pasal.db.engine import build_engine, build_session_factory
from pasal.middleware.request_id import RequestIdMiddleware
from pasal.middleware.security import SecurityHeadersMiddleware
from pasal.middleware.tenant import TenantContextMiddleware
from pasal.services.tenant_resolver import TenantResolver

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    settings: Settings = app.state.settings
    logger.info(
        "pasal.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    yield

    logger.info("pasal.shutdown")
    await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or Settings()

    app = FastAPI(
        title="Pasal",
        description="Multi-tenant storefront backend",
        version=__version__,
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    token_service = TokenService(settings)
    tenant_resolver = TenantResolver(settings.local_dev_suffix)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_service = token_service
    app.state.hasher = SecretHasher(settings)
    app.state.guard_chain = GuardChain(token_service)
    app.state.tenant_resolver = tenant_resolver

    # ── Middleware stack ──────────────────────────────────────
    # Starlette runs middleware in reverse order of registration.
    # Request flow: CORS → RequestId → Security → Tenant → handler
    app.add_middleware(TenantContextMiddleware, resolver=tenant_resolver)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)
    ensure_routes_guarded(app)

    return app

"""FastAPI auth dependencies.

Learn: ``guard(access)`` turns a RouteAccess descriptor into a Depends()
callable. Every API route attaches exactly one, either as a parameter
(to receive the Identity) or in ``dependencies=[...]`` for public routes:

    @router.get("/me")
    async def me(identity: Identity = Depends(guard(AUTHENTICATED))): ...

    @router.get("/health", dependencies=[Depends(guard(PUBLIC))])
    async def health(): ...

``ensure_routes_guarded`` runs at startup and refuses to build the app if
any /api route forgot its descriptor.
"""

from typing import Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.routing import APIRoute
from sqlalchemy.ext.asyncio import AsyncSession

from pasal.auth.guards import GuardChain, Identity, RouteAccess, extract_credential
from pasal.db.engine import get_db
from pasal.services.product_service import ProductService
from pasal.services.session_manager import SessionManager
from pasal.services.tenant_registry import TenantRegistry
from pasal.storage.products import SqlProductStore
from pasal.storage.stores import SqlTenantStore
from pasal.storage.users import SqlCredentialStore


def get_session_manager(
    request: Request, db: AsyncSession = Depends(get_db)
) -> SessionManager:
    state = request.app.state
    users = SqlCredentialStore(db, state.settings.storage_timeout_seconds)
    return SessionManager(users, state.hasher, state.token_service)


def get_tenant_registry(
    request: Request, db: AsyncSession = Depends(get_db)
) -> TenantRegistry:
    timeout = request.app.state.settings.storage_timeout_seconds
    return TenantRegistry(
        SqlTenantStore(db, timeout), SqlProductStore(db, timeout)
    )


def get_product_service(
    request: Request, db: AsyncSession = Depends(get_db)
) -> ProductService:
    timeout = request.app.state.settings.storage_timeout_seconds
    return ProductService(SqlProductStore(db, timeout), SqlTenantStore(db, timeout))


def guard(access: RouteAccess):
    """Build the dependency that runs the guard chain for one route."""

    async def _dependency(
        request: Request,
        authorization: Optional[str] = Header(None),
        sessions: SessionManager = Depends(get_session_manager),
    ) -> Optional[Identity]:
        chain: GuardChain = request.app.state.guard_chain
        credential = extract_credential(authorization, request.cookies)
        identity = await chain.evaluate(access, credential, sessions.load_identity)
        request.state.identity = identity
        return identity

    _dependency.route_access = access
    return _dependency


def route_access_of(route: APIRoute) -> Optional[RouteAccess]:
    """The RouteAccess attached to a route, searching nested dependencies."""
    pending = list(route.dependant.dependencies)
    while pending:
        dep = pending.pop()
        access = getattr(dep.call, "route_access", None)
        if access is not None:
            return access
        pending.extend(dep.dependencies)
    return None


def ensure_routes_guarded(app: FastAPI, prefix: str = "/api/") -> None:
    """Raise RuntimeError if any API route has no RouteAccess descriptor."""
    missing = [
        f"{sorted(route.methods)} {route.path}"
        for route in app.routes
        if isinstance(route, APIRoute)
        and route.path.startswith(prefix)
        and route_access_of(route) is None
    ]
    if missing:
        raise RuntimeError(f"Routes without an access descriptor: {', '.join(missing)}")

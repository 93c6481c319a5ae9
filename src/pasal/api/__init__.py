"""API route aggregation.

All routers registered here get mounted in main.py under /api/v1.

Learn: access control is declared on each route (``guard(PUBLIC)``,
``guard(AUTHENTICATED)``, ``guard(RouteAccess.roles(...))``), not per
router, so public and protected routes can live side by side in one module.
``ensure_routes_guarded`` checks at startup that none was forgotten.
"""

from fastapi import APIRouter

from pasal.api.auth import router as auth_router
from pasal.api.health import router as health_router
from pasal.api.products import router as products_router
from pasal.api.stores import router as stores_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(stores_router, tags=["stores"])
api_router.include_router(products_router, tags=["products"])

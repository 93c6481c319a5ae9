"""Tenant context middleware.

Learn: resolves the Host header once per request and stores the result on
``request.state.tenant`` for handlers (and binds it into the log context).
It never rejects a request; routes that need a tenant ask the registry,
which answers BadRequest when there is none.
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from pasal.services.tenant_resolver import TenantResolver


class TenantContextMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, resolver: TenantResolver):
        super().__init__(app)
        self.resolver = resolver

    async def dispatch(self, request: Request, call_next) -> Response:
        tenant = self.resolver.resolve(request.headers.get("host"))
        request.state.tenant = tenant
        if tenant.is_tenant_scoped:
            structlog.contextvars.bind_contextvars(tenant=tenant.subdomain)
        return await call_next(request)

"""Error taxonomy shared by the auth core, tenancy, and storage layers.

Learn: services raise these typed errors; ``pasal.api.errors`` turns them
into HTTP responses in one place. Only ``TransientError`` is safe for a
client to retry — everything else is terminal for that request.
"""


class PasalError(Exception):
    """Base class. Subclasses pin the HTTP status and a stable error code."""

    status_code: int = 400
    code: str = "bad_request"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(PasalError):
    """Malformed request, e.g. no tenant on a tenant-scoped route."""

    status_code = 400
    code = "bad_request"


class UnauthorizedError(PasalError):
    """Missing, expired or forged token, or the session was revoked."""

    status_code = 401
    code = "unauthorized"


class InvalidCredentialsError(UnauthorizedError):
    """Login failed. Unknown email and wrong password look the same."""

    code = "invalid_credentials"


class ExternalProviderOnlyError(UnauthorizedError):
    """Account has no local password (created through an external provider)."""

    code = "external_provider_only"


class ForbiddenError(PasalError):
    """Authenticated, but the role is insufficient or the tenant is closed."""

    status_code = 403
    code = "forbidden"


class NotFoundError(PasalError):
    """Nothing matches under the caller's visibility."""

    status_code = 404
    code = "not_found"


class ConflictError(PasalError):
    """Duplicate email or subdomain."""

    status_code = 409
    code = "conflict"


class TransientError(PasalError):
    """Storage failure or deadline exceeded. Retryable."""

    status_code = 503
    code = "transient"

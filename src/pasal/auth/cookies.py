"""Auth cookies.

Learn: browsers get both tokens as HttpOnly cookies (JavaScript can't read
them). ``secure`` is only switched on in production so local HTTP dev works.
Starlette's ``max_age`` is in seconds.
"""

from fastapi import Response

from pasal.auth.guards import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE
from pasal.auth.jwt import TokenPair, TokenService


def set_auth_cookies(
    response: Response, tokens: TokenPair, token_service: TokenService, secure: bool
) -> None:
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        tokens.access_token,
        max_age=int(token_service.access_ttl.total_seconds()),
        httponly=True,
        secure=secure,
        samesite="lax",
        path="/",
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        tokens.refresh_token,
        max_age=int(token_service.refresh_ttl.total_seconds()),
        httponly=True,
        secure=secure,
        samesite="lax",
        path="/",
    )


def clear_auth_cookies(response: Response, secure: bool) -> None:
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(
            name, path="/", httponly=True, secure=secure, samesite="lax"
        )

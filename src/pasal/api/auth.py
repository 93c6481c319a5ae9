"""Auth API — registration, login, refresh, logout.

Learn: Routes for the session lifecycle:
- POST /auth/register → create a LOCAL user
- POST /auth/login → email/password → token pair (body + HttpOnly cookies)
- POST /auth/refresh → refresh token → rotated pair
- GET /auth/me → current user's profile
- POST /auth/logout → revoke the refresh token, clear cookies

Refresh is public at the guard level: the refresh token itself is the
credential, checked against the refresh secret and the stored hash.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response

from pasal.auth.cookies import clear_auth_cookies, set_auth_cookies
from pasal.auth.dependencies import get_session_manager, guard
from pasal.auth.guards import AUTHENTICATED, PUBLIC, REFRESH_TOKEN_COOKIE, Identity
from pasal.auth.jwt import TokenKind
from pasal.errors import UnauthorizedError
from pasal.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserRead,
)
from pasal.services.session_manager import SessionManager

router = APIRouter(prefix="/auth")


@router.post(
    "/register",
    response_model=UserRead,
    status_code=201,
    dependencies=[Depends(guard(PUBLIC))],
)
async def register(
    body: RegisterRequest, sessions: SessionManager = Depends(get_session_manager)
):
    return await sessions.register(
        email=body.email, name=body.name, password=body.password, role=body.role
    )


@router.post(
    "/login", response_model=LoginResponse, dependencies=[Depends(guard(PUBLIC))]
)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    sessions: SessionManager = Depends(get_session_manager),
):
    """Login with email and password → tokens in the body and as cookies."""
    result = await sessions.login(body.email, body.password)
    state = request.app.state
    set_auth_cookies(
        response, result.tokens, state.token_service, state.settings.is_production
    )
    return LoginResponse(
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
        user=UserRead.model_validate(result.profile),
    )


@router.post(
    "/refresh", response_model=TokenResponse, dependencies=[Depends(guard(PUBLIC))]
)
async def refresh(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = None,
    authorization: Optional[str] = Header(None),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Exchange a refresh token for a new pair. The old refresh token dies."""
    presented = _presented_refresh_token(body, authorization, request.cookies)
    if not presented:
        raise UnauthorizedError("Refresh token missing")

    state = request.app.state
    subject = state.token_service.verify(presented, TokenKind.REFRESH)
    tokens = await sessions.refresh(subject, presented)
    set_auth_cookies(response, tokens, state.token_service, state.settings.is_production)
    return TokenResponse(
        access_token=tokens.access_token, refresh_token=tokens.refresh_token
    )


@router.get("/me", response_model=UserRead)
async def get_me(
    identity: Identity = Depends(guard(AUTHENTICATED)),
    sessions: SessionManager = Depends(get_session_manager),
):
    return await sessions.current_user(str(identity.user_id))


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    identity: Identity = Depends(guard(AUTHENTICATED)),
    sessions: SessionManager = Depends(get_session_manager),
):
    await sessions.logout(str(identity.user_id))
    clear_auth_cookies(response, request.app.state.settings.is_production)
    return {"logged_out": True}


def _presented_refresh_token(
    body: Optional[RefreshRequest], authorization: Optional[str], cookies
) -> Optional[str]:
    """Body first, then ``Authorization: Bearer``, then the refresh cookie."""
    if body is not None and body.refresh_token:
        return body.refresh_token
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return cookies.get(REFRESH_TOKEN_COOKIE) or None

"""Token service tests — separate secrets, type claim, expiry."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from conftest import make_settings
from pasal.auth.jwt import InvalidTokenError, TokenKind, TokenService
from pasal.errors import UnauthorizedError


@pytest.fixture()
def tokens():
    return TokenService(make_settings())


def test_access_token_round_trip(tokens):
    token = tokens.issue_access_token("user-1")
    assert tokens.verify(token, TokenKind.ACCESS) == "user-1"


def test_refresh_token_signed_with_refresh_secret(tokens):
    token = tokens.issue_refresh_token("user-1")
    payload = jwt.decode(token, "test-refresh-secret", algorithms=["HS256"])
    assert payload["type"] == "refresh"
    with pytest.raises(jwt.InvalidSignatureError):
        jwt.decode(token, "test-access-secret", algorithms=["HS256"])


def test_refresh_token_rejected_as_access(tokens):
    """A refresh token can never authenticate a request."""
    pair = tokens.issue_pair("user-1")
    with pytest.raises(InvalidTokenError):
        tokens.verify(pair.refresh_token, TokenKind.ACCESS)
    with pytest.raises(InvalidTokenError):
        tokens.verify(pair.access_token, TokenKind.REFRESH)


def test_wrong_type_claim_with_right_secret(tokens):
    """Signature alone isn't enough; the type claim must match."""
    now = datetime.now(timezone.utc)
    forged = jwt.encode(
        {"sub": "user-1", "type": "refresh", "exp": now + timedelta(minutes=5)},
        "test-access-secret",
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError, match="Wrong token type"):
        tokens.verify(forged, TokenKind.ACCESS)


def test_expired_token(tokens):
    past = datetime.now(timezone.utc) - timedelta(minutes=1)
    expired = jwt.encode(
        {"sub": "user-1", "type": "access", "exp": past},
        "test-access-secret",
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError, match="expired"):
        tokens.verify(expired, TokenKind.ACCESS)


def test_missing_subject(tokens):
    no_sub = jwt.encode(
        {"type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "test-access-secret",
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError):
        tokens.verify(no_sub, TokenKind.ACCESS)


def test_garbage_and_empty_tokens(tokens):
    with pytest.raises(InvalidTokenError):
        tokens.verify("not.a.jwt", TokenKind.ACCESS)
    with pytest.raises(InvalidTokenError, match="missing"):
        tokens.verify("", TokenKind.ACCESS)


def test_invalid_token_is_unauthorized(tokens):
    """Token errors map to 401 through the shared taxonomy."""
    with pytest.raises(UnauthorizedError) as exc_info:
        tokens.verify("junk", TokenKind.ACCESS)
    assert exc_info.value.status_code == 401


def test_tokens_are_unique_within_a_second(tokens):
    """jti makes back-to-back refresh tokens differ."""
    a = tokens.issue_refresh_token("user-1")
    b = tokens.issue_refresh_token("user-1")
    assert a != b


def test_ttls_follow_settings():
    svc = TokenService(
        make_settings(access_token_expire_minutes=5, refresh_token_expire_days=2)
    )
    assert svc.access_ttl == timedelta(minutes=5)
    assert svc.refresh_ttl == timedelta(days=2)


def test_settings_reject_shared_secret():
    with pytest.raises(ValueError):
        make_settings(refresh_token_secret="test-access-secret")


def test_settings_reject_default_secrets_outside_development():
    with pytest.raises(ValueError):
        make_settings(
            jwt_secret="change-me-in-production",
            environment="production",
        )

"""Session token tests — lifetime, tampering, claims."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from newsdesk.auth.jwt import TokenError, create_access_token, verify_token
from newsdesk.config import settings
from newsdesk.db.models import Role


def _ago(minutes: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(minutes=minutes)


def test_round_trip_claims():
    token = create_access_token("user-1", Role.AUTHOR, username="alice")
    claims = verify_token(token)
    assert claims.subject_id == "user-1"
    assert claims.role is Role.AUTHOR
    assert claims.username == "alice"
    assert claims.expires_at - claims.issued_at == timedelta(hours=1)


def test_token_still_valid_after_30_minutes():
    token = create_access_token("user-1", Role.ADMIN, issued_at=_ago(30))
    assert verify_token(token).role is Role.ADMIN


def test_token_expired_after_61_minutes():
    token = create_access_token("user-1", Role.ADMIN, issued_at=_ago(61))
    with pytest.raises(TokenError, match="expired"):
        verify_token(token)


def test_wrong_secret_is_rejected():
    token = jwt.encode(
        {"sub": "user-1", "role": "admin", "iat": _ago(0), "exp": _ago(-5)},
        "not-the-secret",
        algorithm="HS256",
    )
    with pytest.raises(TokenError, match="Invalid token"):
        verify_token(token)


def test_unknown_role_is_rejected():
    token = jwt.encode(
        {"sub": "user-1", "role": "superuser", "iat": _ago(0), "exp": _ago(-5)},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(TokenError, match="unknown role"):
        verify_token(token)


def test_missing_role_claim_is_rejected():
    token = jwt.encode(
        {"sub": "user-1", "iat": _ago(0), "exp": _ago(-5)},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(TokenError):
        verify_token(token)


def test_garbage_is_rejected():
    with pytest.raises(TokenError):
        verify_token("definitely-not-a-jwt")

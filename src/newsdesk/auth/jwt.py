"""JWT session token creation and verification.

Tokens are stateless: there is no revocation list, so a role change or a
deleted account only takes effect once the token expires (1 hour).

Claims: sub (user id), role, username, iat, exp.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from newsdesk.config import settings
from newsdesk.db.models import Role


class TokenError(Exception):
    """Raised when token verification fails."""


@dataclass(frozen=True)
class TokenClaims:
    subject_id: str
    role: Role
    username: str
    issued_at: datetime
    expires_at: datetime


def create_access_token(
    subject_id: str,
    role: Role | str,
    username: str = "",
    issued_at: Optional[datetime] = None,
) -> str:
    """Sign a session token valid for access_token_expire_minutes."""
    issued = issued_at or datetime.now(timezone.utc)
    expires = issued + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": subject_id,
        "role": Role(role).value,
        "username": username,
        "iat": issued,
        "exp": expires,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> TokenClaims:
    """Verify and decode a session token.

    Raises TokenError if the signature is wrong, the token is malformed,
    it has expired, or its role claim is unknown.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "role", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    try:
        role = Role(payload["role"])
    except ValueError:
        raise TokenError(f"Invalid token: unknown role {payload['role']!r}")

    return TokenClaims(
        subject_id=str(payload["sub"]),
        role=role,
        username=payload.get("username", ""),
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )

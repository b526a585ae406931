"""FastAPI auth dependencies — the access control gate.

Used as Depends() in route handlers (or router-level dependencies) to
extract the caller's identity and apply the route's AccessPolicy.

Order is fixed and short-circuits on the first failure:
  no Bearer token → Unauthenticated
  bad token       → InvalidToken
  role check      → Forbidden        (no DB access yet)
  ownership check → NotFound / Forbidden  (reads the article once)
"""

import uuid
from typing import Optional

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.auth.jwt import TokenError, verify_token
from newsdesk.auth.policy import AccessPolicy, check_access, needs_ownership_check
from newsdesk.db.engine import get_db
from newsdesk.db.models import Article, Role
from newsdesk.errors import (
    Forbidden,
    InvalidToken,
    NotFound,
    Unauthenticated,
    ValidationFailed,
)

logger = structlog.get_logger()


class CurrentIdentity:
    """The authenticated caller, attached to the request context.

    Built from token claims only; the credential store is not consulted.
    """

    def __init__(self, user_id: str, role: Role, username: str = ""):
        self.user_id = user_id
        self.role = role
        self.username = username

    def __repr__(self) -> str:
        return f"CurrentIdentity(user_id={self.user_id!r}, role={self.role.value!r})"


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
) -> Optional[CurrentIdentity]:
    """Extract current identity (optional — returns None if no Bearer token)."""
    token = _bearer_token(authorization)
    if token is None:
        return None
    try:
        claims = verify_token(token)
    except TokenError as e:
        raise InvalidToken(str(e))
    return CurrentIdentity(
        user_id=claims.subject_id,
        role=claims.role,
        username=claims.username,
    )


async def get_current_user(
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if no auth)."""
    if identity is None:
        raise Unauthenticated("Authentication required")
    return identity


async def require_admin(
    identity: CurrentIdentity = Depends(get_current_user),
) -> CurrentIdentity:
    """AdminOnly policy."""
    try:
        check_access(AccessPolicy.ADMIN_ONLY, identity.role)
    except Forbidden:
        logger.info("auth.denied", policy=AccessPolicy.ADMIN_ONLY.value, role=identity.role.value)
        raise
    return identity


async def require_author_or_admin(
    request: Request,
    identity: CurrentIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CurrentIdentity:
    """AuthorOrAdmin policy, ownership-aware on /id/{article_id} routes.

    Only an author targeting a single article triggers a store read.
    """
    policy = AccessPolicy.AUTHOR_OR_ADMIN
    is_owner: Optional[bool] = None
    raw_id = request.path_params.get("article_id")

    if raw_id is not None and needs_ownership_check(policy, identity.role):
        try:
            article_id = uuid.UUID(str(raw_id))
        except ValueError:
            raise ValidationFailed("Invalid article id")
        article = await db.get(Article, article_id)
        if article is None:
            raise NotFound("Article not found")
        is_owner = article.author == identity.username

    try:
        check_access(policy, identity.role, is_owner)
    except Forbidden:
        logger.info(
            "auth.denied",
            policy=policy.value,
            role=identity.role.value,
            article_id=raw_id,
        )
        raise
    return identity

"""Auth and user API routes.

- POST   /auth/register              → create an account (role defaults to member)
- POST   /auth/login                 → email/password → session token
- POST   /auth/logout                → stateless acknowledgement
- GET    /auth/me                    → the caller's profile
- GET    /auth/users                 → all users (admin)
- GET    /auth/users/{key}/{value}   → one user by id, email or username
- PUT    /auth/users/{key}/{value}   → partial update (admin)
- DELETE /auth/users/{key}/{value}   → remove (admin)

Tokens are not stored server-side, so logout only tells the client to
discard its token. A token stays valid until it expires.
"""

from typing import Literal

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.auth.dependencies import CurrentIdentity, get_current_user, require_admin
from newsdesk.auth.jwt import create_access_token
from newsdesk.db.engine import get_db
from newsdesk.db.models import Role
from newsdesk.errors import NotFound, Unauthenticated
from newsdesk.schemas.article import MutationResult
from newsdesk.schemas.user import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserRead,
    UserUpdate,
)
from newsdesk.services.user_service import UserService

logger = structlog.get_logger()
router = APIRouter(prefix="/auth")

LookupKey = Literal["id", "email", "username"]


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


# ─── Register / login / logout ──────────────────────────


@router.post("/register", response_model=UserRead, status_code=201)
async def register(body: RegisterRequest, svc: UserService = Depends(_svc)):
    """Create a new user account."""
    return await svc.register(
        username=body.username,
        email=body.email,
        password=body.password,
        role=body.role,
    )


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, svc: UserService = Depends(_svc)):
    """Login with email and password → 1-hour session token."""
    user = await svc.authenticate(body.email, body.password)
    if user is None:
        logger.info("auth.login_failed")
        raise Unauthenticated("Invalid credentials")

    role = Role(user.role)
    token = create_access_token(str(user.id), role, username=user.username)
    logger.info("auth.login", user_id=str(user.id), role=role.value)
    return TokenResponse(
        access_token=token,
        user_id=user.id,
        username=user.username,
        role=role,
    )


@router.post("/logout")
async def logout():
    return {"message": "Logged out. Discard your token."}


@router.get("/me", response_model=UserRead)
async def get_me(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    user = await svc.find("id", identity.user_id)
    if user is None:
        raise NotFound("User not found")
    return user


# ─── User management ────────────────────────────────────


@router.get("/users", response_model=list[UserRead], dependencies=[Depends(require_admin)])
async def list_users(svc: UserService = Depends(_svc)):
    return await svc.list_users()


@router.get(
    "/users/{key}/{value}",
    response_model=UserRead,
    dependencies=[Depends(get_current_user)],
)
async def get_user(key: LookupKey, value: str, svc: UserService = Depends(_svc)):
    user = await svc.find(key, value)
    if user is None:
        raise NotFound("User not found")
    return user


@router.put(
    "/users/{key}/{value}",
    response_model=MutationResult,
    dependencies=[Depends(require_admin)],
)
async def update_user(
    key: LookupKey,
    value: str,
    body: UserUpdate,
    svc: UserService = Depends(_svc),
):
    """Update a user. A new password is re-hashed before it is stored."""
    count = await svc.update(key, value, body.changes())
    if count == 0:
        raise NotFound("User not found")
    return {"message": "User updated", "count": count}


@router.delete(
    "/users/{key}/{value}",
    response_model=MutationResult,
    dependencies=[Depends(require_admin)],
)
async def delete_user(key: LookupKey, value: str, svc: UserService = Depends(_svc)):
    count = await svc.delete(key, value)
    if count == 0:
        raise NotFound("User not found")
    return {"message": "User deleted", "count": count}

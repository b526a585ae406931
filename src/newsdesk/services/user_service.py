"""User service — the credential store adapter.

Registration, login and profile maintenance. Users can be addressed by
id, email or username; all three are unique.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.auth.password import hash_password, verify_password
from newsdesk.db.models import Role, User, utcnow
from newsdesk.errors import Conflict, ValidationFailed

logger = structlog.get_logger()

# How a user can be addressed in /users/{key}/{value} routes.
LOOKUP_KEYS = ("id", "email", "username")


class UserService:
    """Business logic for accounts and credentials."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Registration / login ───────────────────────────

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        role: Role = Role.MEMBER,
    ) -> User:
        """Create an account. Raises Conflict if email or username is taken."""
        existing = await self.db.execute(
            select(User.email, User.username).where(
                (User.email == email) | (User.username == username)
            )
        )
        for row in existing:
            if row.email == email:
                raise Conflict("Email already registered")
            raise Conflict("Username already taken")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=Role(role).value,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise Conflict("Email or username already registered")
        logger.info("user.registered", user_id=str(user.id), role=user.role)
        return user

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user if the credentials match, else None."""
        user = await self.find("email", email)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    # ─── Lookup ─────────────────────────────────────────

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.username))
        return list(result.scalars().all())

    async def find(self, key: str, value: str) -> Optional[User]:
        condition = self._condition(key, value)
        if condition is None:
            return None
        result = await self.db.execute(select(User).where(condition))
        return result.scalars().first()

    # ─── Update / delete ────────────────────────────────

    async def update(self, key: str, value: str, changes: dict) -> int:
        """Apply a partial update. Returns the modified count (0 or 1)."""
        if not changes:
            raise ValidationFailed("No fields to update")
        condition = self._condition(key, value)
        if condition is None:
            return 0

        values = dict(changes)
        if "password" in values:
            values["password_hash"] = hash_password(values.pop("password"))
        if "role" in values:
            values["role"] = Role(values["role"]).value
        values["updated_at"] = utcnow()

        try:
            result = await self.db.execute(
                update(User)
                .where(condition)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise Conflict("Email or username already registered")
        return result.rowcount or 0

    async def delete(self, key: str, value: str) -> int:
        condition = self._condition(key, value)
        if condition is None:
            return 0
        result = await self.db.execute(
            delete(User).where(condition).execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount or 0

    @staticmethod
    def _condition(key: str, value: str):
        """Build the WHERE clause for a lookup key. None if nothing can match."""
        if key == "id":
            try:
                return User.id == uuid.UUID(value)
            except ValueError:
                return None
        if key == "email":
            return User.email == value
        if key == "username":
            return User.username == value
        raise ValidationFailed(f"Unknown lookup key: {key}")

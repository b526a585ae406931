"""Pydantic schemas for users and session tokens."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from newsdesk.db.models import Role

_EMAIL = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
_USERNAME = r"^[A-Za-z0-9_.-]+$"


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100, pattern=_USERNAME)
    email: str = Field(..., max_length=255, pattern=_EMAIL)
    password: str = Field(..., min_length=8)
    role: Role = Role.MEMBER


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: uuid.UUID
    username: str
    role: Role


class UserRead(BaseModel):
    """User info — never includes the password hash."""
    id: uuid.UUID
    username: str
    email: str
    role: Role
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserUpdate(BaseModel):
    """Partial profile update. A new password is re-hashed before storage."""
    username: Optional[str] = Field(None, min_length=1, max_length=100, pattern=_USERNAME)
    email: Optional[str] = Field(None, max_length=255, pattern=_EMAIL)
    password: Optional[str] = Field(None, min_length=8)
    role: Optional[Role] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)

"""
User Pydantic schemas.
Covers registration, login, profile reads/updates, admin management and token responses.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field, field_validator, model_validator

from taskhub.core.security import validate_password_strength
from taskhub.schemas.common import CamelModel
from taskhub.schemas.pagination import Pagination

UserRole = Literal["user", "admin"]
UserSortField = Literal["name", "email", "role", "createdAt"]


# ── Create ────────────────────────────────────────────────────────────────────

class UserCreate(CamelModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(max_length=128)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return validate_password_strength(v)


class AdminUserCreate(UserCreate):
    role: UserRole = "user"


# ── Update ────────────────────────────────────────────────────────────────────

class ProfileUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    email: EmailStr | None = None
    password: str | None = Field(default=None, max_length=128)
    current_password: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return validate_password_strength(v)

    @model_validator(mode="after")
    def require_current_password(self) -> "ProfileUpdate":
        if self.password is not None and not self.current_password:
            raise ValueError("Current password is required to change password")
        return self


class AdminUserUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    email: EmailStr | None = None
    password: str | None = Field(default=None, max_length=128)
    role: UserRole | None = None
    is_active: bool | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return validate_password_strength(v)


# ── Read ──────────────────────────────────────────────────────────────────────

class UserRead(CamelModel):
    id: uuid.UUID
    name: str
    email: EmailStr
    role: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UserReadPublic(CamelModel):
    """Minimal public profile, safe to embed in task and document responses."""

    id: uuid.UUID
    name: str
    email: str


class UserPage(CamelModel):
    users: list[UserRead]
    pagination: Pagination


# ── Filter ────────────────────────────────────────────────────────────────────

class UserFilter(CamelModel):
    search: str | None = Field(default=None, max_length=200)
    role: UserRole | None = None
    sort_by: UserSortField = "createdAt"
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)


# ── Auth ──────────────────────────────────────────────────────────────────────

class LoginRequest(CamelModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class RefreshTokenRequest(CamelModel):
    refresh_token: str


class Token(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthPayload(Token):
    user: UserRead


class TokenStatus(CamelModel):
    valid: bool = True
    user: UserRead

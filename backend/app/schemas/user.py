"""Pydantic schemas for user operations."""
from __future__ import annotations

from pydantic import Field, field_validator

from app.schemas.common import CamelModel, UtcDateTime


class UserCredentials(CamelModel):
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def _strip_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Username must not be blank")
        return value


class UserCreate(UserCredentials):
    pass


class UserRegistered(CamelModel):
    message: str = "Registration successful"
    public_id: str


class UserRead(CamelModel):
    id: int
    username: str
    public_id: str
    is_admin: bool
    created_at: UtcDateTime

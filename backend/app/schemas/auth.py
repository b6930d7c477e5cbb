"""Authentication-related schemas."""
from __future__ import annotations

from app.schemas.common import CamelModel
from app.schemas.user import UserCredentials, UserRead


class LoginRequest(UserCredentials):
    pass


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead

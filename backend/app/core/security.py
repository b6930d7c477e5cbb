"""Security helpers for password hashing and bearer token signing."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from passlib.context import CryptContext

from .config import get_settings
from .exceptions import Unauthenticated


_password_context = CryptContext(schemes=["argon2"], deprecated="auto")


class PasswordHasher:
    """Hash and verify user passwords using Argon2id."""

    @staticmethod
    def hash(password: str) -> str:
        return _password_context.hash(password)

    @staticmethod
    def verify(password: str, hashed: str) -> bool:
        return _password_context.verify(password, hashed)

    @staticmethod
    def dummy_verify() -> None:
        """Spend the same work as a real verification for unknown users."""
        _password_context.dummy_verify()


@dataclass(frozen=True)
class IdentityClaims:
    """Who the bearer is. Never carries authority."""

    id: int
    username: str
    public_id: str


class TokenSigner:
    """Sign and verify bearer tokens carrying identity claims."""

    def __init__(self, salt: str = "classseat-token", max_age: int | None = None) -> None:
        settings = get_settings()
        self._serializer = URLSafeTimedSerializer(settings.secret_key, salt=salt)
        self._max_age = settings.access_token_expire_minutes * 60 if max_age is None else max_age

    def issue(self, user: Any) -> str:
        return self._serializer.dumps(
            {"id": user.id, "username": user.username, "publicId": user.public_id}
        )

    def verify(self, token: str) -> IdentityClaims:
        try:
            payload = self._serializer.loads(token, max_age=self._max_age)
        except SignatureExpired as exc:
            raise Unauthenticated("Session expired") from exc
        except BadSignature as exc:
            raise Unauthenticated("Invalid session") from exc

        if not isinstance(payload, dict):
            raise Unauthenticated("Invalid session")
        try:
            return IdentityClaims(
                id=int(payload["id"]),
                username=str(payload["username"]),
                public_id=str(payload["publicId"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise Unauthenticated("Invalid session") from exc

"""Reusable dependencies for FastAPI routes."""
from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from datetime import datetime

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import utcnow
from app.core.exceptions import Forbidden, Unauthenticated
from app.core.security import IdentityClaims, TokenSigner
from app.db.session import Database
from app.models.user import User

_bearer = HTTPBearer(auto_error=False)


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db(database: Database = Depends(get_database)) -> AsyncIterator[AsyncSession]:
    async with database.session() as session:
        yield session


def get_clock() -> Callable[[], datetime]:
    return utcnow


def get_token_signer() -> TokenSigner:
    return TokenSigner()


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    signer: TokenSigner = Depends(get_token_signer),
) -> IdentityClaims:
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Not authenticated")
    return signer.verify(credentials.credentials)


async def require_admin(
    identity: IdentityClaims = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db),
) -> IdentityClaims:
    # Authority comes from the current user row, not from the token.
    user = await session.get(User, identity.id)
    if user is None or not user.is_admin:
        raise Forbidden("Administrator privileges required")
    return identity

"""User service functions for registration, lookup and authentication."""
from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, delete, insert, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationFailure, Conflict, NotFound
from app.core.security import PasswordHasher
from app.db.base import id_in_range
from app.models.user import User

logger = logging.getLogger(__name__)

PUBLIC_ID_PREFIX = "U"
MAX_PUBLIC_ID_ATTEMPTS = 20
MAX_INSERT_ATTEMPTS = 3


def generate_public_id(now: datetime, attempt: int = 0) -> str:
    """Time-derived code; later attempts append more random digits."""
    millis = int(now.replace(tzinfo=timezone.utc).timestamp() * 1000)
    candidate = f"{PUBLIC_ID_PREFIX}{str(millis)[-6:]}"
    extra = min(2 * attempt, 12)
    return candidate + "".join(str(secrets.randbelow(10)) for _ in range(extra))


async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def public_id_taken(session: AsyncSession, public_id: str) -> bool:
    return await session.scalar(select(User.id).where(User.public_id == public_id)) is not None


async def allocate_public_id(session: AsyncSession, now: datetime) -> str:
    for attempt in range(MAX_PUBLIC_ID_ATTEMPTS):
        candidate = generate_public_id(now, attempt)
        if not await public_id_taken(session, candidate):
            return candidate
    raise RuntimeError("Could not allocate a unique public id")


async def register_user(session: AsyncSession, username: str, password: str, now: datetime) -> User:
    """Create a user; the first account ever created becomes the administrator.

    The admin flag is computed by the INSERT itself (``NOT EXISTS`` over the
    users table), so concurrent first registrations serialize on the store and
    exactly one of them is granted admin rights.
    """
    if await get_user_by_username(session, username):
        raise Conflict("Username already taken")

    password_hash = PasswordHasher.hash(password)
    for _ in range(MAX_INSERT_ATTEMPTS):
        public_id = await allocate_public_id(session, now)
        is_first_user = ~select(User.id).correlate(None).exists()
        stmt = insert(User.__table__).from_select(
            ["username", "password_hash", "public_id", "is_admin", "created_at"],
            select(
                literal(username, String()),
                literal(password_hash, String()),
                literal(public_id, String()),
                is_first_user,
                literal(now, DateTime()),
            ),
        )
        try:
            await session.execute(stmt)
            break
        except IntegrityError:
            await session.rollback()
            if await get_user_by_username(session, username):
                raise Conflict("Username already taken") from None
            logger.info("Public id %s was claimed concurrently, regenerating", public_id)
    else:
        raise RuntimeError("Could not register user after repeated public id collisions")

    user = await get_user_by_username(session, username)
    if user is None:
        raise RuntimeError("Registered user row not found")
    logger.info("Registered user %s (%s)%s", user.username, user.public_id, " as admin" if user.is_admin else "")
    return user


async def authenticate_user(session: AsyncSession, username: str, password: str) -> User:
    user = await get_user_by_username(session, username)
    if not user:
        PasswordHasher.dummy_verify()
        raise AuthenticationFailure("Invalid username or password")
    if not PasswordHasher.verify(password, user.password_hash):
        raise AuthenticationFailure("Invalid username or password")
    return user


async def get_user(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id) if id_in_range(user_id) else None
    if user is None:
        raise NotFound("User not found")
    return user


async def list_users(session: AsyncSession) -> list[User]:
    result = await session.execute(select(User).order_by(User.id))
    return list(result.scalars().all())


async def delete_user_row(session: AsyncSession, user_id: int) -> bool:
    if not id_in_range(user_id):
        return False
    result = await session.execute(
        delete(User).where(User.id == user_id).execution_options(synchronize_session=False)
    )
    return bool(result.rowcount)

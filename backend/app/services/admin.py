"""Administrative operations spanning users and seats.

These functions own their transaction: each one commits on success and rolls
back everything it touched on failure.
"""
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import Forbidden, NotFound
from app.db.base import id_in_range
from app.models.user import User
from app.services import seats as seat_service
from app.services import users as user_service

logger = logging.getLogger(__name__)


async def reset_seats(session: AsyncSession) -> int:
    try:
        cleared = await seat_service.reset_all_seats(session)
        await session.commit()
    except BaseException:
        await session.rollback()
        raise
    return cleared


async def list_users(session: AsyncSession) -> list[User]:
    return await user_service.list_users(session)


async def delete_user(session: AsyncSession, target_id: int, acting_admin_id: int) -> int:
    """Release the target's seats and delete the account as one unit.

    Returns the number of seats released. Raises ``NotFound`` without touching
    any seat when the account does not exist.
    """
    if target_id == acting_admin_id:
        raise Forbidden("You cannot delete the account you are signed in with")
    if not id_in_range(target_id):
        raise NotFound("User not found")

    try:
        released = await seat_service.release_seats_held_by(session, target_id)
        if not await user_service.delete_user_row(session, target_id):
            raise NotFound("User not found")
        await session.commit()
    except BaseException:
        await session.rollback()
        raise

    logger.info("User %d deleted by admin %d, %d seat(s) released", target_id, acting_admin_id, released)
    return released

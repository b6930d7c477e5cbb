"""Seat registry: listing, reserving and releasing the fixed set of seats.

Every operation starts by sweeping expired reservations so callers never act on
a reservation whose window has already closed. A reservation is expired once
``reserved_until`` is strictly earlier than the evaluation instant; a seat whose
``reserved_until`` equals "now" is still held.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import ColumnElement, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from app.db.base import id_in_range
from app.models.seat import Seat
from app.models.user import User

logger = logging.getLogger(__name__)

_CLEARED = {"is_reserved": False, "reserved_by": None, "reserved_until": None}


@dataclass(frozen=True)
class SeatView:
    id: int
    is_reserved: bool
    reserved_by: int | None
    reserved_until: datetime | None
    username: str | None


@dataclass(frozen=True)
class Reservation:
    seat_id: int
    reserved_until: datetime


def is_expired(seat: Seat, now: datetime) -> bool:
    return seat.reserved_until is not None and seat.reserved_until < now


def _expired_clause(now: datetime) -> ColumnElement[bool]:
    # SQL twin of is_expired; NULL reserved_until never matches.
    return Seat.reserved_until < now


async def _bulk_clear(session: AsyncSession, *criteria: ColumnElement[bool]) -> int:
    stmt = update(Seat).values(**_CLEARED).execution_options(synchronize_session=False)
    if criteria:
        stmt = stmt.where(*criteria)
    result = await session.execute(stmt)
    return result.rowcount or 0


async def sweep_expired(session: AsyncSession, now: datetime, seat_id: int | None = None) -> int:
    """Persistently clear reservations whose window closed before ``now``."""
    criteria = [_expired_clause(now)]
    if seat_id is not None:
        criteria.append(Seat.id == seat_id)
    cleared = await _bulk_clear(session, *criteria)
    if cleared:
        logger.info("Released %d expired reservation(s)", cleared)
    return cleared


async def list_seats(session: AsyncSession, now: datetime) -> list[SeatView]:
    await sweep_expired(session, now)
    result = await session.execute(
        select(Seat, User.username)
        .outerjoin(User, Seat.reserved_by == User.id)
        .order_by(Seat.id)
        .execution_options(populate_existing=True)
    )
    views: list[SeatView] = []
    for seat, username in result.all():
        if is_expired(seat, now) or not seat.is_reserved:
            views.append(SeatView(seat.id, False, None, None, None))
        else:
            views.append(SeatView(seat.id, True, seat.reserved_by, seat.reserved_until, username))
    return views


async def _seat_exists(session: AsyncSession, seat_id: int) -> bool:
    return await session.scalar(select(Seat.id).where(Seat.id == seat_id)) is not None


async def reserve_seat(
    session: AsyncSession,
    seat_id: int,
    requester_id: int,
    hours: float,
    now: datetime,
) -> Reservation:
    if hours is None or not hours > 0:
        raise ValidationError("Reservation length must be a positive number of hours")
    try:
        reserved_until = now + timedelta(hours=hours)
    except OverflowError as exc:
        raise ValidationError("Reservation length is too long") from exc

    if not id_in_range(seat_id):
        raise NotFound("Seat not found")
    await sweep_expired(session, now, seat_id)
    if not await _seat_exists(session, seat_id):
        raise NotFound("Seat not found")
    if await session.scalar(select(User.id).where(User.id == requester_id)) is None:
        raise NotFound("User not found")

    # Compare-and-set: only a free seat row is claimed.
    result = await session.execute(
        update(Seat)
        .where(Seat.id == seat_id, Seat.is_reserved.is_(False))
        .values(is_reserved=True, reserved_by=requester_id, reserved_until=reserved_until)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        raise Conflict("Seat is already reserved")

    logger.info("Seat %d reserved by user %d until %s", seat_id, requester_id, reserved_until.isoformat())
    return Reservation(seat_id=seat_id, reserved_until=reserved_until)


async def cancel_reservation(session: AsyncSession, seat_id: int, requester_id: int, now: datetime) -> None:
    if not id_in_range(seat_id):
        raise NotFound("Seat not found")
    await sweep_expired(session, now, seat_id)
    row = (
        await session.execute(select(Seat.is_reserved, Seat.reserved_by).where(Seat.id == seat_id))
    ).one_or_none()
    if row is None:
        raise NotFound("Seat not found")
    if not row.is_reserved or row.reserved_by != requester_id:
        raise Forbidden("You can only cancel your own reservation")

    cleared = await _bulk_clear(
        session,
        Seat.id == seat_id,
        Seat.is_reserved.is_(True),
        Seat.reserved_by == requester_id,
    )
    if not cleared:
        raise Forbidden("You can only cancel your own reservation")
    logger.info("Seat %d released by user %d", seat_id, requester_id)


async def reset_all_seats(session: AsyncSession) -> int:
    cleared = await _bulk_clear(session)
    logger.info("Reset all %d seats", cleared)
    return cleared


async def release_seats_held_by(session: AsyncSession, user_id: int) -> int:
    return await _bulk_clear(session, Seat.reserved_by == user_id)

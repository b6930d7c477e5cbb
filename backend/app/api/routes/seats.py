"""Seat listing and reservation endpoints."""
from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_clock, get_current_identity, get_db
from app.core.security import IdentityClaims
from app.schemas.common import MessageResponse
from app.schemas.seat import CancelRequest, ReservationRead, ReserveRequest, SeatRead
from app.services import seats as seat_service

router = APIRouter(prefix="/seats", tags=["seats"])


@router.get("", response_model=list[SeatRead])
async def list_seats(
    session: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> list[SeatRead]:
    seats = await seat_service.list_seats(session, clock())
    # Persist the expiry sweep.
    await session.commit()
    return [SeatRead.model_validate(seat) for seat in seats]


@router.post("/reserve", response_model=ReservationRead)
async def reserve_seat(
    payload: ReserveRequest,
    identity: IdentityClaims = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ReservationRead:
    reservation = await seat_service.reserve_seat(session, payload.seat_id, identity.id, payload.hours, clock())
    await session.commit()
    return ReservationRead(seat_id=reservation.seat_id, reserved_until=reservation.reserved_until)


@router.post("/cancel", response_model=MessageResponse)
async def cancel_reservation(
    payload: CancelRequest,
    identity: IdentityClaims = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> MessageResponse:
    await seat_service.cancel_reservation(session, payload.seat_id, identity.id, clock())
    await session.commit()
    return MessageResponse(message="Reservation cancelled")

"""Pydantic schemas for seats and reservations."""
from __future__ import annotations

from pydantic import Field

from app.schemas.common import CamelModel, UtcDateTime


class SeatRead(CamelModel):
    id: int
    is_reserved: bool
    reserved_by: int | None = None
    reserved_until: UtcDateTime | None = None
    username: str | None = None


class ReserveRequest(CamelModel):
    seat_id: int = Field(..., ge=1)
    hours: float = Field(..., gt=0, le=24 * 365)


class CancelRequest(CamelModel):
    seat_id: int = Field(..., ge=1)


class ReservationRead(CamelModel):
    message: str = "Reservation successful"
    seat_id: int
    reserved_until: UtcDateTime

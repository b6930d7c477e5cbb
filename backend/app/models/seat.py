"""Database model for the fixed set of classroom seats."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Seat(Base):
    """A bookable seat. Rows are seeded once and never added or removed."""

    __tablename__ = "seats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    is_reserved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Weak reference to users.id; released by the admin delete cascade only.
    reserved_by: Mapped[int | None] = mapped_column(Integer, default=None, index=True)
    reserved_until: Mapped[datetime | None] = mapped_column(DateTime, default=None)

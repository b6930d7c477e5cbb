"""SQLAlchemy models exposed for metadata creation and imports."""
from .seat import Seat
from .user import User

__all__ = ["User", "Seat"]

"""Route modules for the ClassSeat API."""
from . import admin, auth, health, seats

__all__ = ["admin", "auth", "health", "seats"]

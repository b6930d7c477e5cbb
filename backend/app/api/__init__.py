"""API router aggregator."""
from fastapi import APIRouter

from app.api.routes import admin, auth, health, seats

api_router = APIRouter(prefix="/api")
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(seats.router)
api_router.include_router(admin.router)

__all__ = ["api_router"]

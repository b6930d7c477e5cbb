"""Administrator endpoints. Every route re-checks admin rights against the store."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, require_admin
from app.core.security import IdentityClaims
from app.schemas.common import MessageResponse
from app.schemas.user import UserRead
from app.services import admin as admin_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/reset-seats", response_model=MessageResponse)
async def reset_seats(
    session: AsyncSession = Depends(get_db),
    _: IdentityClaims = Depends(require_admin),
) -> MessageResponse:
    await admin_service.reset_seats(session)
    return MessageResponse(message="All seats have been reset")


@router.get("/users", response_model=list[UserRead])
async def list_users(
    session: AsyncSession = Depends(get_db),
    _: IdentityClaims = Depends(require_admin),
) -> list[UserRead]:
    users = await admin_service.list_users(session)
    return [UserRead.model_validate(user) for user in users]


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    session: AsyncSession = Depends(get_db),
    admin: IdentityClaims = Depends(require_admin),
) -> MessageResponse:
    await admin_service.delete_user(session, user_id, admin.id)
    return MessageResponse(message="User deleted")

"""Registration, login and current-user endpoints."""
from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_clock, get_current_identity, get_db, get_token_signer
from app.core.security import IdentityClaims, TokenSigner
from app.schemas.auth import LoginRequest, TokenResponse
from app.schemas.user import UserCreate, UserRead, UserRegistered
from app.services import users as user_service

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=UserRegistered, status_code=status.HTTP_201_CREATED)
async def register_user(
    payload: UserCreate,
    session: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> UserRegistered:
    user = await user_service.register_user(session, payload.username, payload.password, clock())
    await session.commit()
    return UserRegistered(public_id=user.public_id)


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db),
    signer: TokenSigner = Depends(get_token_signer),
) -> TokenResponse:
    user = await user_service.authenticate_user(session, payload.username, payload.password)
    return TokenResponse(access_token=signer.issue(user), user=UserRead.model_validate(user))


@router.get("/user", response_model=UserRead)
async def get_current_user_info(
    identity: IdentityClaims = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db),
) -> UserRead:
    user = await user_service.get_user(session, identity.id)
    return UserRead.model_validate(user)

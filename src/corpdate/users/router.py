"""Profile endpoints: /api/v1/users/me."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.auth.dependencies import get_current_user
from corpdate.database import get_session
from corpdate.db.models import User
from corpdate.users.schemas import ProfileResponse, ProfileUpdateRequest, UserCard
from corpdate.users.service import get_profile, update_profile

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("/me", response_model=ProfileResponse)
async def get_me(user: User = Depends(get_current_user)) -> ProfileResponse:
    """Get the authenticated user's profile."""
    return ProfileResponse.model_validate(user)


@router.patch("/me", response_model=ProfileResponse)
async def update_me(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ProfileResponse:
    """Update profile fields and mark the profile complete."""
    updated = await update_profile(db, user, body.model_dump(exclude_unset=True))
    await db.commit()
    return ProfileResponse.model_validate(updated)


@router.get("/{user_id}", response_model=UserCard)
async def get_user_card(
    user_id: int,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserCard:
    """Public card of another member. Contact fields are never included."""
    profile = await get_profile(db, user_id)
    return UserCard.model_validate(profile)

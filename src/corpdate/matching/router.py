"""Matching endpoints: candidate pool, likes, passes, accepted matches."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.auth.dependencies import get_current_user
from corpdate.database import get_session
from corpdate.db.models import User
from corpdate.dependencies import get_publisher
from corpdate.matching.schemas import (
    AcceptedMatchesResponse,
    AcceptedMatchResponse,
    LikeRequest,
    LikeResponse,
    PassRequest,
    PotentialMatchesResponse,
)
from corpdate.matching.service import (
    list_accepted_matches,
    list_potential_matches,
    record_like,
    record_pass,
)
from corpdate.users.schemas import UserCard

router = APIRouter(prefix="/api/v1/matches", tags=["Matching"])


@router.get("/potential", response_model=PotentialMatchesResponse)
async def potential_matches(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PotentialMatchesResponse:
    """Candidates the user has not liked or passed yet."""
    candidates = await list_potential_matches(db, user)
    return PotentialMatchesResponse(matches=[UserCard.model_validate(c) for c in candidates])


@router.post("/like", response_model=LikeResponse, status_code=201)
async def like(
    body: LikeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Any = Depends(get_publisher),
) -> LikeResponse:
    """Like a user. Reports whether the like completed a mutual match."""
    match, is_mutual = await record_like(db, user.id, body.liked_user_id, redis=redis)
    await db.commit()
    return LikeResponse(match_id=match.id, status=match.status, is_mutual=is_mutual)


@router.post("/pass", status_code=201)
async def pass_user(
    body: PassRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """Hide a user from the candidate pool."""
    await record_pass(db, user.id, body.passed_user_id)
    await db.commit()
    return {"detail": "User passed"}


@router.get("/accepted", response_model=AcceptedMatchesResponse)
async def accepted_matches(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AcceptedMatchesResponse:
    """Mutual matches, newest first."""
    matches = await list_accepted_matches(db, user.id)
    return AcceptedMatchesResponse(
        matches=[
            AcceptedMatchResponse(
                id=m.id,
                user=UserCard.model_validate(m.liked_user),
                status=m.status,
                created_at=m.created_at,
            )
            for m in matches
        ]
    )

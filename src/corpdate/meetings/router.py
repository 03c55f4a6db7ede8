"""Meeting endpoints."""

from __future__ import annotations

import math
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.auth.dependencies import get_current_user
from corpdate.database import get_session
from corpdate.db.models import User
from corpdate.dependencies import get_publisher
from corpdate.meetings.schemas import (
    CreateMeetingRequest,
    MeetingListResponse,
    MeetingResponse,
    Pagination,
    UpdateMeetingStatusRequest,
)
from corpdate.meetings.service import (
    create_meeting,
    get_meeting,
    list_meetings,
    transition_meeting_status,
)

router = APIRouter(prefix="/api/v1/meetings", tags=["Meetings"])


@router.post("", response_model=MeetingResponse, status_code=201)
async def arrange_meeting(
    body: CreateMeetingRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Any = Depends(get_publisher),
) -> MeetingResponse:
    """Propose a dinner meeting at a payment tier."""
    meeting = await create_meeting(
        db,
        user,
        girl_user_id=body.girl_user_id,
        restaurant_id=body.restaurant_id,
        date_time=body.date_time,
        payment_tier=body.payment_tier,
        special_requests=body.special_requests,
        redis=redis,
    )
    await db.commit()
    return MeetingResponse.model_validate(meeting)


@router.get("", response_model=MeetingListResponse)
async def get_meetings(
    status: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> MeetingListResponse:
    """Meetings the user takes part in, newest first."""
    meetings, total = await list_meetings(db, user.id, status, page, limit)
    return MeetingListResponse(
        meetings=[MeetingResponse.model_validate(m) for m in meetings],
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )


@router.get("/{meeting_id}", response_model=MeetingResponse)
async def get_meeting_detail(
    meeting_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> MeetingResponse:
    meeting = await get_meeting(db, meeting_id, user.id)
    return MeetingResponse.model_validate(meeting)


@router.patch("/{meeting_id}/status", response_model=MeetingResponse)
async def update_meeting_status(
    meeting_id: int,
    body: UpdateMeetingStatusRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Any = Depends(get_publisher),
) -> MeetingResponse:
    """Accept, cancel or complete a meeting."""
    meeting = await transition_meeting_status(db, meeting_id, user.id, body.status, redis=redis)
    await db.commit()
    return MeetingResponse.model_validate(meeting)

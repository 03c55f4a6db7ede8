"""Request/response schemas for matching endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from corpdate.users.schemas import UserCard


class LikeRequest(BaseModel):
    liked_user_id: int


class LikeResponse(BaseModel):
    match_id: int
    status: str
    is_mutual: bool


class PassRequest(BaseModel):
    passed_user_id: int


class PotentialMatchesResponse(BaseModel):
    matches: list[UserCard]


class AcceptedMatchResponse(BaseModel):
    id: int
    user: UserCard
    status: str
    created_at: datetime | None = None


class AcceptedMatchesResponse(BaseModel):
    matches: list[AcceptedMatchResponse]

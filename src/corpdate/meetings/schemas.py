"""Request/response schemas for meeting endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from corpdate.cabs.schemas import CabBookingResponse
from corpdate.restaurants.schemas import RestaurantResponse


class MeetingParticipant(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str | None = None
    image: str | None = None
    location: str | None = None


class CreateMeetingRequest(BaseModel):
    """Propose a dinner. The caller becomes the paying "boy" side."""

    girl_user_id: int
    restaurant_id: int
    date_time: datetime
    payment_tier: str = Field(..., examples=["500", "650", "1000"])
    special_requests: str | None = Field(None, max_length=1000)


class UpdateMeetingStatusRequest(BaseModel):
    status: str


class MeetingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    boy_user_id: int
    girl_user_id: int
    restaurant_id: int
    date_time: datetime
    payment_tier: str
    boy_payment: int
    girl_payment: int
    total_amount: int
    boy_payment_status: str
    girl_payment_status: str
    status: str
    special_requests: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    boy_user: MeetingParticipant
    girl_user: MeetingParticipant
    restaurant: RestaurantResponse
    cab_bookings: list[CabBookingResponse] = []


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class MeetingListResponse(BaseModel):
    meetings: list[MeetingResponse]
    pagination: Pagination

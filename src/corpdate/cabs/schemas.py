"""Request/response schemas for cab endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CreateCabBookingRequest(BaseModel):
    meeting_id: int
    passenger_id: int
    pickup_location: str = Field(..., min_length=1, max_length=256)
    drop_location: str = Field(..., min_length=1, max_length=256)
    pickup_time: datetime
    estimated_fare: int = Field(..., ge=0)
    book_for_passenger: bool = False


class CabBookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    meeting_id: int
    user_id: int
    passenger_id: int
    pickup_location: str
    drop_location: str
    pickup_time: datetime
    estimated_fare: int
    max_coverage: int
    user_payment: int
    passenger_payment: int
    user_payment_status: str
    passenger_payment_status: str
    status: str
    created_at: datetime | None = None


class CabBookingListResponse(BaseModel):
    cab_bookings: list[CabBookingResponse]
    page: int
    limit: int
    total: int
    pages: int


class LocationIn(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: str | None = None


class RideEstimateRequest(BaseModel):
    pickup: LocationIn
    dropoff: LocationIn


class RideEstimateResponse(BaseModel):
    fare: int
    currency: str
    distance: float
    duration: int
    pickup_estimate: int

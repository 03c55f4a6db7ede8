"""Cab booking and ride-estimate endpoints."""

from __future__ import annotations

import math
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.auth.dependencies import get_current_user
from corpdate.cabs.estimator import Location, RideEstimator
from corpdate.cabs.schemas import (
    CabBookingListResponse,
    CabBookingResponse,
    CreateCabBookingRequest,
    RideEstimateRequest,
    RideEstimateResponse,
)
from corpdate.cabs.service import create_cab_booking, list_cab_bookings
from corpdate.database import get_session
from corpdate.db.models import User
from corpdate.dependencies import get_estimator, get_publisher

router = APIRouter(prefix="/api/v1", tags=["Cabs"])


@router.post("/cab-bookings", response_model=CabBookingResponse, status_code=201)
async def book_cab(
    body: CreateCabBookingRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Any = Depends(get_publisher),
) -> CabBookingResponse:
    """Book a ride to a meeting; the fare is split by the coverage rule."""
    booking = await create_cab_booking(
        db,
        user.id,
        meeting_id=body.meeting_id,
        passenger_id=body.passenger_id,
        pickup_location=body.pickup_location,
        drop_location=body.drop_location,
        pickup_time=body.pickup_time,
        estimated_fare=body.estimated_fare,
        book_for_passenger=body.book_for_passenger,
        redis=redis,
    )
    await db.commit()
    return CabBookingResponse.model_validate(booking)


@router.get("/cab-bookings", response_model=CabBookingListResponse)
async def get_cab_bookings(
    status: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CabBookingListResponse:
    bookings, total = await list_cab_bookings(db, user.id, status, page, limit)
    return CabBookingListResponse(
        cab_bookings=[CabBookingResponse.model_validate(b) for b in bookings],
        page=page,
        limit=limit,
        total=total,
        pages=math.ceil(total / limit),
    )


@router.post("/rides/estimate", response_model=RideEstimateResponse)
async def estimate_ride(
    body: RideEstimateRequest,
    _user: User = Depends(get_current_user),
    estimator: RideEstimator = Depends(get_estimator),
) -> RideEstimateResponse:
    """Estimate fare, distance and duration between two points."""
    estimate = await estimator.estimate_ride(
        Location(body.pickup.latitude, body.pickup.longitude, body.pickup.address),
        Location(body.dropoff.latitude, body.dropoff.longitude, body.dropoff.address),
    )
    return RideEstimateResponse(**estimate.to_dict())

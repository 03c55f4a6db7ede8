"""Restaurant catalogue endpoint."""

from __future__ import annotations

import math

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.auth.dependencies import get_current_user
from corpdate.database import get_session
from corpdate.db.models import User
from corpdate.restaurants.schemas import RestaurantListResponse, RestaurantResponse
from corpdate.restaurants.service import list_restaurants

router = APIRouter(prefix="/api/v1", tags=["Restaurants"])


@router.get("/restaurants", response_model=RestaurantListResponse)
async def get_restaurants(
    city: str | None = Query(None, max_length=64),
    cuisine: str | None = Query(None, max_length=64),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> RestaurantListResponse:
    restaurants, total = await list_restaurants(db, city, cuisine, page, limit)
    return RestaurantListResponse(
        restaurants=[RestaurantResponse.model_validate(r) for r in restaurants],
        page=page,
        limit=limit,
        total=total,
        pages=math.ceil(total / limit),
    )

"""Restaurant response schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class RestaurantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    address: str | None = None
    city: str | None = None
    cuisine: str | None = None
    price_range: str | None = None
    rating: float | None = None
    image_url: str | None = None


class RestaurantListResponse(BaseModel):
    restaurants: list[RestaurantResponse]
    page: int
    limit: int
    total: int
    pages: int

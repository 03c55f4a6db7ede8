"""Restaurant catalogue queries."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.db.models import Restaurant


async def list_restaurants(
    db: AsyncSession,
    city: str | None = None,
    cuisine: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Restaurant], int]:
    """Active restaurants, best rated first. City and cuisine match as case-insensitive substrings."""
    filters = [Restaurant.is_active.is_(True)]
    if city:
        filters.append(Restaurant.city.ilike(f"%{city}%"))
    if cuisine:
        filters.append(Restaurant.cuisine.ilike(f"%{cuisine}%"))

    total_result = await db.execute(select(func.count()).select_from(Restaurant).where(*filters))
    total = total_result.scalar_one()

    result = await db.execute(
        select(Restaurant)
        .where(*filters)
        .order_by(Restaurant.rating.desc().nulls_last(), Restaurant.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total

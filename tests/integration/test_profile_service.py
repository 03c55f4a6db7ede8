"""Integration tests for profiles and the restaurant catalogue."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.errors import NotFoundError
from corpdate.restaurants.service import list_restaurants
from corpdate.users.service import get_profile, update_profile


class TestProfile:
    @pytest.mark.asyncio
    async def test_update_marks_complete(self, db: AsyncSession, make_user) -> None:
        user = await make_user(is_profile_complete=False)
        await update_profile(db, user, {"company": "Acme", "interests": "chess, jazz", "is_premium": True})
        await db.commit()
        await db.refresh(user)

        assert user.company == "Acme"
        assert user.interests == ["chess", "jazz"]
        assert user.is_profile_complete is True
        assert user.is_premium is False
        assert user.updated_at is not None

    @pytest.mark.asyncio
    async def test_missing_profile(self, db: AsyncSession) -> None:
        with pytest.raises(NotFoundError):
            await get_profile(db, 424242)


class TestRestaurants:
    @pytest.mark.asyncio
    async def test_active_only_best_rated_first(self, db: AsyncSession, make_restaurant) -> None:
        good = await make_restaurant(name="Good", rating=4.2)
        best = await make_restaurant(name="Best", rating=4.9)
        unrated = await make_restaurant(name="New", rating=None)
        await make_restaurant(name="Closed", rating=5.0, is_active=False)

        restaurants, total = await list_restaurants(db)
        assert total == 3
        assert [r.id for r in restaurants] == [best.id, good.id, unrated.id]

    @pytest.mark.asyncio
    async def test_filters_are_case_insensitive_substrings(self, db: AsyncSession, make_restaurant) -> None:
        await make_restaurant(name="Trattoria", city="Bengaluru", cuisine="Italian")
        sushi = await make_restaurant(name="Sushi Bar", city="Mumbai", cuisine="Japanese")

        restaurants, total = await list_restaurants(db, city="mum")
        assert (total, [r.id for r in restaurants]) == (1, [sushi.id])
        restaurants, _ = await list_restaurants(db, cuisine="JAPAN")
        assert [r.id for r in restaurants] == [sushi.id]

    @pytest.mark.asyncio
    async def test_pagination(self, db: AsyncSession, make_restaurant) -> None:
        for i in range(5):
            await make_restaurant(name=f"R{i}", rating=float(i))
        page, total = await list_restaurants(db, page=2, limit=2)
        assert total == 5
        assert [r.name for r in page] == ["R2", "R1"]

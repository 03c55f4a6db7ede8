"""Profile read/update business logic."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select

from corpdate.db.models import User
from corpdate.errors import NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# Columns a member may write through the profile form.
PROFILE_FIELDS = (
    "name",
    "image",
    "linkedin_url",
    "twitter_url",
    "title",
    "company",
    "industry",
    "experience",
    "salary",
    "education",
    "location",
    "bio",
    "gender",
    "age",
    "looking_for",
    "age_range",
    "religion",
    "interests",
    "lifestyle",
    "relationship_goals",
)


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_profile(db: AsyncSession, user_id: int) -> User:
    """Fetch a user's profile. Raises NotFoundError if absent."""
    user = await get_user_by_id(db, user_id)
    if user is None:
        msg = "User not found"
        raise NotFoundError(msg)
    return user


def normalize_interests(value: list[str] | str | None) -> list[str] | None:
    """Accept a list or a comma-separated string; drop blanks."""
    if value is None:
        return None
    items = value.split(",") if isinstance(value, str) else value
    return [item.strip() for item in items if item and item.strip()]


async def update_profile(db: AsyncSession, user: User, fields: dict[str, Any]) -> User:
    """
    Write the provided profile fields and mark the profile complete.

    Keys outside PROFILE_FIELDS are ignored.
    """
    for key, value in fields.items():
        if key not in PROFILE_FIELDS:
            continue
        if key == "interests":
            value = normalize_interests(value)
        setattr(user, key, value)

    user.is_profile_complete = True
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("profile_updated", user_id=user.id, fields=sorted(k for k in fields if k in PROFILE_FIELDS))
    return user

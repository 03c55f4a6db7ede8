"""Match engine.

A like is a directed ``Match(user -> liked_user)`` row. When the reciprocal
row already exists, both rows flip to ``accepted`` in the same transaction;
an accepted pair may message each other and arrange meetings.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from corpdate.config import get_settings
from corpdate.db.locking import lock_user_pair
from corpdate.db.models import Match, Pass, User
from corpdate.errors import ConflictError, InvalidInputError, NotFoundError
from corpdate.notifications.service import create_notification

logger = structlog.get_logger()


async def _get_like(db: AsyncSession, user_id: int, liked_user_id: int) -> Match | None:
    result = await db.execute(
        select(Match).where(Match.user_id == user_id, Match.liked_user_id == liked_user_id)
    )
    return result.scalar_one_or_none()


async def record_like(
    db: AsyncSession,
    user_id: int,
    liked_user_id: int,
    redis: Any | None = None,
) -> tuple[Match, bool]:
    """
    Record ``user_id`` liking ``liked_user_id``.

    Returns:
        Tuple of (the new Match row, whether the like completed a mutual match).

    Raises:
        InvalidInputError: Liking yourself.
        NotFoundError: The liked user does not exist.
        ConflictError: The like was already recorded.
    """
    if user_id == liked_user_id:
        msg = "You cannot like yourself"
        raise InvalidInputError(msg)

    users = await lock_user_pair(db, user_id, liked_user_id)
    if liked_user_id not in users:
        msg = "User not found"
        raise NotFoundError(msg)

    if await _get_like(db, user_id, liked_user_id) is not None:
        msg = "You have already liked this user"
        raise ConflictError(msg)

    now = datetime.now(timezone.utc)
    like = Match(
        user_id=user_id,
        liked_user_id=liked_user_id,
        status="pending",
        created_at=now,
        updated_at=now,
    )
    db.add(like)
    await db.flush()

    reciprocal = await _get_like(db, liked_user_id, user_id)
    is_mutual = reciprocal is not None
    if is_mutual:
        for row in (like, reciprocal):
            row.status = "accepted"
            row.updated_at = now
        await db.flush()
        liker, liked = users.get(user_id), users[liked_user_id]
        await create_notification(
            db, user_id, "new_match", "It's a match!",
            f"You and {liked.name or 'your match'} liked each other.",
            related_user_id=liked_user_id, redis=redis,
        )
        await create_notification(
            db, liked_user_id, "new_match", "It's a match!",
            f"You and {liker.name if liker and liker.name else 'your match'} liked each other.",
            related_user_id=user_id, redis=redis,
        )

    logger.info("like_recorded", user_id=user_id, liked_user_id=liked_user_id, is_mutual=is_mutual)
    return like, is_mutual


async def record_pass(db: AsyncSession, user_id: int, passed_user_id: int) -> Pass:
    """
    Hide ``passed_user_id`` from the caller's candidate pool.

    Raises:
        InvalidInputError: Passing on yourself.
        NotFoundError: The passed user does not exist.
        ConflictError: Already passed.
    """
    if user_id == passed_user_id:
        msg = "You cannot pass on yourself"
        raise InvalidInputError(msg)

    target = await db.execute(select(User.id).where(User.id == passed_user_id))
    if target.scalar_one_or_none() is None:
        msg = "User not found"
        raise NotFoundError(msg)

    existing = await db.execute(
        select(Pass).where(Pass.user_id == user_id, Pass.passed_user_id == passed_user_id)
    )
    if existing.scalar_one_or_none() is not None:
        msg = "You have already passed on this user"
        raise ConflictError(msg)

    row = Pass(user_id=user_id, passed_user_id=passed_user_id, created_at=datetime.now(timezone.utc))
    db.add(row)
    await db.flush()
    logger.info("pass_recorded", user_id=user_id, passed_user_id=passed_user_id)
    return row


async def list_potential_matches(db: AsyncSession, user: User) -> list[User]:
    """
    Candidate pool for ``user``: complete, active profiles whose preference
    admits the user's gender, with an unset age or one inside the configured
    band, not yet liked or passed. Newest profiles first, capped.
    """
    settings = get_settings()

    liked = select(Match.liked_user_id).where(Match.user_id == user.id)
    passed = select(Pass.passed_user_id).where(Pass.user_id == user.id)

    preference = [User.looking_for == "both", User.looking_for.is_(None)]
    if user.gender is not None:
        preference.append(User.looking_for == user.gender)

    result = await db.execute(
        select(User)
        .where(
            User.id != user.id,
            User.is_profile_complete.is_(True),
            User.is_active.is_(True),
            or_(*preference),
            or_(
                User.age.is_(None),
                and_(User.age >= settings.min_match_age, User.age <= settings.max_match_age),
            ),
            User.id.not_in(liked),
            User.id.not_in(passed),
        )
        .order_by(User.created_at.desc(), User.id.desc())
        .limit(settings.potential_match_limit)
    )
    return list(result.scalars().all())


async def list_accepted_matches(db: AsyncSession, user_id: int) -> list[Match]:
    """The caller's accepted rows with the other user loaded, newest first."""
    result = await db.execute(
        select(Match)
        .options(selectinload(Match.liked_user))
        .where(Match.user_id == user_id, Match.status == "accepted")
        .order_by(Match.created_at.desc(), Match.id.desc())
    )
    return list(result.scalars().all())


async def are_matched(db: AsyncSession, first_id: int, second_id: int) -> bool:
    """True iff an accepted like exists between the two users in either direction."""
    result = await db.execute(
        select(Match.id)
        .where(
            Match.status == "accepted",
            or_(
                and_(Match.user_id == first_id, Match.liked_user_id == second_id),
                and_(Match.user_id == second_id, Match.liked_user_id == first_id),
            ),
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None

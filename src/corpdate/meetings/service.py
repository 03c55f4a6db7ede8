"""Meeting workflow.

Status lifecycle::

    pending ──> confirmed ──> completed
       │
       └──> cancelled

``cancelled`` and ``completed`` are terminal. A pending meeting is confirmed
either when both payment shares complete or when the invited party accepts.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from corpdate.db.locking import lock_user_pair
from corpdate.db.models import MEETING_STATUSES, Meeting, Restaurant, User
from corpdate.errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from corpdate.meetings.tiers import compute_payment_split
from corpdate.notifications.service import create_notification

logger = structlog.get_logger()

VALID_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"completed"}),
    "cancelled": frozenset(),
    "completed": frozenset(),
}

PAYER_ROLES = ("boy", "girl")


def _with_details(stmt):  # noqa: ANN001, ANN202
    return stmt.options(
        selectinload(Meeting.boy_user),
        selectinload(Meeting.girl_user),
        selectinload(Meeting.restaurant),
        selectinload(Meeting.cab_bookings),
    )


def payer_role(meeting: Meeting, user_id: int) -> str | None:
    """'boy', 'girl' or None when the user is not a participant."""
    if user_id == meeting.boy_user_id:
        return "boy"
    if user_id == meeting.girl_user_id:
        return "girl"
    return None


def other_party(meeting: Meeting, user_id: int) -> int:
    return meeting.girl_user_id if user_id == meeting.boy_user_id else meeting.boy_user_id


async def create_meeting(
    db: AsyncSession,
    initiator: User,
    girl_user_id: int,
    restaurant_id: int,
    date_time: datetime,
    payment_tier: str,
    special_requests: str | None = None,
    redis: Any | None = None,
) -> Meeting:
    """
    Propose a dinner meeting from ``initiator`` to ``girl_user_id``.

    Raises:
        InvalidInputError: Unknown tier or inviting yourself.
        NotFoundError: Invitee or restaurant missing.
        ConflictError: A pending or confirmed meeting already exists for the pair.
    """
    split = compute_payment_split(payment_tier)
    if girl_user_id == initiator.id:
        msg = "You cannot arrange a meeting with yourself"
        raise InvalidInputError(msg)

    users = await lock_user_pair(db, initiator.id, girl_user_id)
    if girl_user_id not in users or initiator.id not in users:
        msg = "User or restaurant not found"
        raise NotFoundError(msg)

    restaurant = await db.get(Restaurant, restaurant_id)
    if restaurant is None:
        msg = "User or restaurant not found"
        raise NotFoundError(msg)

    existing = await db.execute(
        select(Meeting.id).where(
            Meeting.boy_user_id == initiator.id,
            Meeting.girl_user_id == girl_user_id,
            Meeting.status.in_(("pending", "confirmed")),
        )
    )
    if existing.first() is not None:
        msg = "You already have a pending or confirmed meeting with this user"
        raise ConflictError(msg)

    now = datetime.now(timezone.utc)
    meeting = Meeting(
        boy_user_id=initiator.id,
        girl_user_id=girl_user_id,
        restaurant_id=restaurant_id,
        date_time=date_time,
        payment_tier=payment_tier,
        boy_payment=split.boy_payment,
        girl_payment=split.girl_payment,
        total_amount=split.total_amount,
        boy_payment_status="pending",
        girl_payment_status="pending",
        status="pending",
        special_requests=special_requests,
        created_at=now,
        updated_at=now,
    )
    db.add(meeting)
    await db.flush()

    await create_notification(
        db, girl_user_id, "meeting_created", "New dinner invitation",
        f"{initiator.name or 'Your match'} invited you to dinner at {restaurant.name}.",
        related_user_id=initiator.id, meeting_id=meeting.id,
        data={"payment_tier": payment_tier, "girl_payment": split.girl_payment},
        redis=redis,
    )
    logger.info(
        "meeting_created",
        meeting_id=meeting.id,
        boy_user_id=initiator.id,
        girl_user_id=girl_user_id,
        payment_tier=payment_tier,
    )
    return await get_meeting(db, meeting.id, initiator.id)


async def get_meeting(db: AsyncSession, meeting_id: int, user_id: int) -> Meeting:
    """
    Participant-only read with participants, restaurant and cab bookings loaded.

    Raises:
        NotFoundError: Missing, or the user is not a participant.
    """
    result = await db.execute(
        _with_details(select(Meeting))
        .where(
            Meeting.id == meeting_id,
            or_(Meeting.boy_user_id == user_id, Meeting.girl_user_id == user_id),
        )
        .execution_options(populate_existing=True)
    )
    meeting = result.scalar_one_or_none()
    if meeting is None:
        msg = "Meeting not found"
        raise NotFoundError(msg)
    return meeting


async def list_meetings(
    db: AsyncSession,
    user_id: int,
    status: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Meeting], int]:
    """Meetings where the user is either party, newest first. Returns (page, total)."""
    filters = [or_(Meeting.boy_user_id == user_id, Meeting.girl_user_id == user_id)]
    if status is not None:
        if status not in MEETING_STATUSES:
            msg = f"Invalid status filter: {status}"
            raise InvalidInputError(msg)
        filters.append(Meeting.status == status)

    total_result = await db.execute(select(func.count()).select_from(Meeting).where(*filters))
    total = total_result.scalar_one()

    result = await db.execute(
        _with_details(select(Meeting))
        .where(*filters)
        .order_by(Meeting.created_at.desc(), Meeting.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def transition_meeting_status(
    db: AsyncSession,
    meeting_id: int,
    actor_id: int,
    new_status: str,
    redis: Any | None = None,
) -> Meeting:
    """
    Move a meeting along its lifecycle on behalf of a participant.

    Raises:
        InvalidInputError: Unknown status.
        NotFoundError: Missing meeting or non-participant actor.
        ForbiddenError: Accepting an unpaid meeting you were not invited to.
        ConflictError: Transition not allowed from the current status, or the
            status changed concurrently.
    """
    if new_status not in MEETING_STATUSES:
        msg = f"Invalid status: {new_status}"
        raise InvalidInputError(msg)

    meeting = await get_meeting(db, meeting_id, actor_id)
    current = meeting.status
    if new_status not in VALID_TRANSITIONS[current]:
        msg = f"Cannot change meeting status from {current} to {new_status}"
        raise ConflictError(msg)

    fully_paid = meeting.boy_payment_status == "completed" and meeting.girl_payment_status == "completed"
    if new_status == "confirmed" and not fully_paid and actor_id != meeting.girl_user_id:
        msg = "Only the invited party can accept this meeting"
        raise ForbiddenError(msg)

    result = await db.execute(
        update(Meeting)
        .where(Meeting.id == meeting_id, Meeting.status == current)
        .values(status=new_status, updated_at=datetime.now(timezone.utc))
    )
    if result.rowcount == 0:
        msg = "Meeting status changed, reload and retry"
        raise ConflictError(msg)

    other_id = other_party(meeting, actor_id)
    if new_status == "cancelled":
        await create_notification(
            db, other_id, "meeting_cancelled", "Meeting cancelled",
            "Your dinner meeting was cancelled.",
            related_user_id=actor_id, meeting_id=meeting_id, redis=redis,
        )
    else:
        type_, title = (
            ("meeting_confirmed", "Meeting confirmed")
            if new_status == "confirmed"
            else ("meeting_completed", "Meeting completed")
        )
        for user_id in (meeting.boy_user_id, meeting.girl_user_id):
            await create_notification(
                db, user_id, type_, title, f"Your dinner meeting is {new_status}.",
                related_user_id=other_party(meeting, user_id), meeting_id=meeting_id, redis=redis,
            )

    logger.info(
        "meeting_status_changed",
        meeting_id=meeting_id,
        actor_id=actor_id,
        from_status=current,
        to_status=new_status,
    )
    return await get_meeting(db, meeting_id, actor_id)


async def apply_payment_completion(
    db: AsyncSession,
    meeting_id: int,
    role: str,
    redis: Any | None = None,
) -> bool:
    """
    Record a completed share and confirm the meeting once both are paid.

    Both steps are compare-and-set, so two payers finishing concurrently
    confirm the meeting exactly once.

    A zero share (tier "1000" invitee) is never paid, so it stays ``pending``
    and such a meeting is confirmed by the invitee accepting it. Cab bookings
    differ: a cab share of zero counts as settled, because nobody accepts a
    ride.

    Returns:
        True if this call moved the meeting to ``confirmed``.

    Raises:
        ConflictError: The share was already completed.
    """
    if role not in PAYER_ROLES:
        msg = f"Invalid payer role: {role}"
        raise ValueError(msg)

    column = Meeting.boy_payment_status if role == "boy" else Meeting.girl_payment_status
    now = datetime.now(timezone.utc)

    share = await db.execute(
        update(Meeting)
        .where(Meeting.id == meeting_id, column == "pending")
        .values({column: "completed", Meeting.updated_at: now})
    )
    if share.rowcount == 0:
        logger.warning("meeting_share_already_completed", meeting_id=meeting_id, role=role)
        msg = "This share of the meeting is already paid"
        raise ConflictError(msg)

    confirm = await db.execute(
        update(Meeting)
        .where(
            Meeting.id == meeting_id,
            Meeting.status == "pending",
            Meeting.boy_payment_status == "completed",
            Meeting.girl_payment_status == "completed",
        )
        .values(status="confirmed", updated_at=now)
    )
    if confirm.rowcount == 0:
        return False

    meeting = await db.get(Meeting, meeting_id, populate_existing=True)
    if meeting is None:
        return False
    for user_id in (meeting.boy_user_id, meeting.girl_user_id):
        await create_notification(
            db, user_id, "meeting_confirmed", "Meeting confirmed",
            "Both shares are paid. Your dinner meeting is confirmed.",
            related_user_id=other_party(meeting, user_id), meeting_id=meeting_id, redis=redis,
        )
    logger.info("meeting_confirmed_by_payment", meeting_id=meeting_id)
    return True

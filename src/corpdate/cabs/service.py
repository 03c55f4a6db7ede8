"""Cab bookings attached to meetings."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.cabs.split import compute_split
from corpdate.config import get_settings
from corpdate.db.models import CAB_STATUSES, CabBooking, Meeting
from corpdate.errors import ConflictError, InvalidInputError, NotFoundError
from corpdate.notifications.service import create_notification

logger = structlog.get_logger()

CAB_PAYER_ROLES = ("user", "passenger")


async def create_cab_booking(
    db: AsyncSession,
    user_id: int,
    meeting_id: int,
    passenger_id: int,
    pickup_location: str,
    drop_location: str,
    pickup_time: datetime,
    estimated_fare: int,
    book_for_passenger: bool = False,
    redis: Any | None = None,
) -> CabBooking:
    """
    Book a ride to a meeting for yourself or for your partner.

    Raises:
        NotFoundError: Meeting missing or the caller is not a participant.
        InvalidInputError: Passenger is not a participant, or booking for the
            partner without ``book_for_passenger``.
        ConflictError: The meeting is cancelled or completed.
    """
    result = await db.execute(
        select(Meeting).where(
            Meeting.id == meeting_id,
            or_(Meeting.boy_user_id == user_id, Meeting.girl_user_id == user_id),
        )
    )
    meeting = result.scalar_one_or_none()
    if meeting is None:
        msg = "Meeting not found or access denied"
        raise NotFoundError(msg)

    if passenger_id not in (meeting.boy_user_id, meeting.girl_user_id):
        msg = "Passenger is not part of this meeting"
        raise InvalidInputError(msg)

    is_self = passenger_id == user_id
    if not is_self and not book_for_passenger:
        msg = "Cannot book cab for another user without explicit consent"
        raise InvalidInputError(msg)

    if meeting.status in ("cancelled", "completed"):
        msg = f"Cannot book a cab for a {meeting.status} meeting"
        raise ConflictError(msg)

    max_coverage = get_settings().cab_max_coverage
    split = compute_split(estimated_fare, is_self, max_coverage)

    booking = CabBooking(
        meeting_id=meeting_id,
        user_id=user_id,
        passenger_id=passenger_id,
        pickup_location=pickup_location,
        drop_location=drop_location,
        pickup_time=pickup_time,
        estimated_fare=estimated_fare,
        max_coverage=max_coverage,
        user_payment=split.user_payment,
        passenger_payment=split.passenger_payment,
        user_payment_status="pending",
        passenger_payment_status="pending",
        status="pending",
        created_at=datetime.now(timezone.utc),
    )
    db.add(booking)
    await db.flush()

    if not is_self:
        await create_notification(
            db, passenger_id, "cab_booked", "A cab was booked for you",
            f"Your ride from {pickup_location} is booked. Your share is {split.passenger_payment}.",
            related_user_id=user_id, meeting_id=meeting_id, cab_booking_id=booking.id,
            data={"user_payment": split.user_payment, "passenger_payment": split.passenger_payment},
            redis=redis,
        )

    logger.info(
        "cab_booked",
        cab_booking_id=booking.id,
        meeting_id=meeting_id,
        user_id=user_id,
        passenger_id=passenger_id,
        estimated_fare=estimated_fare,
        user_payment=split.user_payment,
        passenger_payment=split.passenger_payment,
    )
    return booking


async def list_cab_bookings(
    db: AsyncSession,
    user_id: int,
    status: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[CabBooking], int]:
    """Bookings the user arranged or rides in, newest first."""
    filters = [or_(CabBooking.user_id == user_id, CabBooking.passenger_id == user_id)]
    if status is not None:
        if status not in CAB_STATUSES:
            msg = f"Invalid status filter: {status}"
            raise InvalidInputError(msg)
        filters.append(CabBooking.status == status)

    total_result = await db.execute(select(func.count()).select_from(CabBooking).where(*filters))
    total = total_result.scalar_one()

    result = await db.execute(
        select(CabBooking)
        .where(*filters)
        .order_by(CabBooking.created_at.desc(), CabBooking.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


def cab_payer_role(booking: CabBooking, user_id: int) -> str | None:
    """'user' (arranger), 'passenger' (rider) or None.

    A self-booked ride has the arranger as rider; the arranger owes the fare.
    """
    if user_id == booking.user_id:
        return "user"
    if user_id == booking.passenger_id:
        return "passenger"
    return None


async def apply_cab_payment_completion(db: AsyncSession, cab_booking_id: int, role: str) -> bool:
    """
    Record a completed cab share; confirm the booking once every non-zero
    share is paid.

    Returns:
        True if this call moved the booking to ``confirmed``.

    Raises:
        ConflictError: The share was already completed.
    """
    if role not in CAB_PAYER_ROLES:
        msg = f"Invalid payer role: {role}"
        raise ValueError(msg)

    column = CabBooking.user_payment_status if role == "user" else CabBooking.passenger_payment_status
    share = await db.execute(
        update(CabBooking)
        .where(CabBooking.id == cab_booking_id, column == "pending")
        .values({column: "completed"})
    )
    if share.rowcount == 0:
        logger.warning("cab_share_already_completed", cab_booking_id=cab_booking_id, role=role)
        msg = "This share of the cab booking is already paid"
        raise ConflictError(msg)

    confirm = await db.execute(
        update(CabBooking)
        .where(
            CabBooking.id == cab_booking_id,
            CabBooking.status == "pending",
            or_(CabBooking.user_payment == 0, CabBooking.user_payment_status == "completed"),
            or_(CabBooking.passenger_payment == 0, CabBooking.passenger_payment_status == "completed"),
        )
        .values(status="confirmed")
    )
    confirmed = confirm.rowcount > 0
    if confirmed:
        logger.info("cab_booking_confirmed", cab_booking_id=cab_booking_id)
    return confirmed

"""Payment reconciliation.

Local payment state only moves to ``completed`` after the gateway signature
over ``order_id|payment_id`` checks out. Every transition is a compare-and-set
on the current status, so duplicate verification calls and webhook
redeliveries complete a record at most once. A share (one party's part of a
meeting or a cab ride) is also paid at most once: a second order completing
the same share is rejected with ``ConflictError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.cabs.service import apply_cab_payment_completion, cab_payer_role
from corpdate.config import get_settings
from corpdate.db.models import CabBooking, Meeting, PaymentOrder, PremiumPurchase, User
from corpdate.errors import (
    ConflictError,
    InvalidInputError,
    InvalidSignatureError,
    NotFoundError,
)
from corpdate.meetings.service import apply_payment_completion, other_party, payer_role
from corpdate.notifications.service import create_notification
from corpdate.payments.gateway import GatewayOrder, PaymentGateway, verify_signature
from corpdate.premium.service import unlocked_data

logger = structlog.get_logger()

PAYMENT_PURPOSES = ("meeting", "cab")
HANDLED_EVENTS = ("payment.captured", "payment.failed")
# A failed attempt may be followed by a successful retry on the same order.
COMPLETABLE_STATUSES = ("pending", "failed")


@dataclass
class VerificationResult:
    """Outcome of a completed payment, returned to the paying client."""

    kind: str  # meeting | cab | premium
    record_id: int
    amount: int
    status: str = "completed"
    meeting_id: int | None = None
    meeting_status: str | None = None
    cab_booking_id: int | None = None
    cab_status: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Order creation
# ---------------------------------------------------------------------------


async def _resolve_meeting_share(db: AsyncSession, user_id: int, meeting_id: int) -> tuple[str, int]:
    result = await db.execute(
        select(Meeting).where(
            Meeting.id == meeting_id,
            or_(Meeting.boy_user_id == user_id, Meeting.girl_user_id == user_id),
        )
    )
    meeting = result.scalar_one_or_none()
    if meeting is None:
        msg = "Meeting not found"
        raise NotFoundError(msg)
    if meeting.status in ("cancelled", "completed"):
        msg = f"Cannot pay for a {meeting.status} meeting"
        raise ConflictError(msg)

    role = payer_role(meeting, user_id)
    if role == "boy":
        amount, status = meeting.boy_payment, meeting.boy_payment_status
    else:
        amount, status = meeting.girl_payment, meeting.girl_payment_status
    if status == "completed":
        msg = "Your share of this meeting is already paid"
        raise ConflictError(msg)
    return role, amount


async def _resolve_cab_share(db: AsyncSession, user_id: int, cab_booking_id: int) -> tuple[str, int, int]:
    result = await db.execute(
        select(CabBooking).where(
            CabBooking.id == cab_booking_id,
            or_(CabBooking.user_id == user_id, CabBooking.passenger_id == user_id),
        )
    )
    booking = result.scalar_one_or_none()
    if booking is None:
        msg = "Cab booking not found"
        raise NotFoundError(msg)
    if booking.status == "cancelled":
        msg = "Cannot pay for a cancelled cab booking"
        raise ConflictError(msg)

    role = cab_payer_role(booking, user_id)
    if role == "user":
        amount, status = booking.user_payment, booking.user_payment_status
    else:
        amount, status = booking.passenger_payment, booking.passenger_payment_status
    if status == "completed":
        msg = "Your share of this cab booking is already paid"
        raise ConflictError(msg)
    return role, amount, booking.meeting_id


async def _find_open_order(
    db: AsyncSession,
    user_id: int,
    purpose: str,
    meeting_id: int,
    cab_booking_id: int | None,
    role: str,
) -> PaymentOrder | None:
    """The caller's still-pending order for the same share, if any."""
    stmt = select(PaymentOrder).where(
        PaymentOrder.user_id == user_id,
        PaymentOrder.purpose == purpose,
        PaymentOrder.meeting_id == meeting_id,
        PaymentOrder.payer_role == role,
        PaymentOrder.status == "pending",
    )
    if cab_booking_id is None:
        stmt = stmt.where(PaymentOrder.cab_booking_id.is_(None))
    else:
        stmt = stmt.where(PaymentOrder.cab_booking_id == cab_booking_id)
    result = await db.execute(stmt.order_by(PaymentOrder.id.desc()).limit(1))
    return result.scalar_one_or_none()


async def create_payment_order(
    db: AsyncSession,
    gateway: PaymentGateway,
    user: User,
    purpose: str,
    meeting_id: int | None = None,
    cab_booking_id: int | None = None,
) -> tuple[PaymentOrder, GatewayOrder]:
    """
    Open a gateway order for the caller's share of a meeting or a cab ride.

    A share has at most one open order: asking again returns the pending one.

    Raises:
        InvalidInputError: Unknown purpose, missing id, or nothing owed.
        NotFoundError: Record missing or the caller is not part of it.
        ConflictError: The share is already paid or the record is closed.
        UpstreamError: The gateway failed.
    """
    if purpose == "meeting":
        if meeting_id is None:
            msg = "meeting_id is required"
            raise InvalidInputError(msg)
        role, amount = await _resolve_meeting_share(db, user.id, meeting_id)
        cab_booking_id = None
        reference = meeting_id
    elif purpose == "cab":
        if cab_booking_id is None:
            msg = "cab_booking_id is required"
            raise InvalidInputError(msg)
        role, amount, meeting_id = await _resolve_cab_share(db, user.id, cab_booking_id)
        reference = cab_booking_id
    else:
        msg = f"Invalid payment purpose: {purpose}. Must be one of {list(PAYMENT_PURPOSES)}"
        raise InvalidInputError(msg)

    if amount <= 0:
        msg = "Nothing to pay for this share"
        raise InvalidInputError(msg)

    open_order = await _find_open_order(db, user.id, purpose, meeting_id, cab_booking_id, role)
    if open_order is not None:
        logger.info("payment_order_reused", payment_order_id=open_order.id, order_id=open_order.gateway_order_id)
        return open_order, GatewayOrder(
            id=open_order.gateway_order_id,
            amount=open_order.amount,
            currency=open_order.currency,
            receipt=f"{purpose}_{reference}_{role}",
        )

    currency = get_settings().currency
    now = datetime.now(timezone.utc)
    order = await gateway.create_order(
        amount,
        currency,
        receipt=f"{purpose}_{reference}_{role}_{int(now.timestamp())}",
        notes={"purpose": purpose, "user_id": str(user.id), "reference": str(reference), "role": role},
    )

    record = PaymentOrder(
        user_id=user.id,
        purpose=purpose,
        meeting_id=meeting_id,
        cab_booking_id=cab_booking_id,
        payer_role=role,
        amount=amount,
        currency=currency,
        gateway_order_id=order.id,
        status="pending",
        created_at=now,
    )
    db.add(record)
    await db.flush()

    logger.info(
        "payment_order_created",
        payment_order_id=record.id,
        purpose=purpose,
        user_id=user.id,
        role=role,
        amount=amount,
        order_id=order.id,
    )
    return record, order


# ---------------------------------------------------------------------------
# Completion (shared by client verification and the webhook)
# ---------------------------------------------------------------------------


async def _complete_payment_order(
    db: AsyncSession,
    record: PaymentOrder,
    payment_id: str,
    redis: Any | None,
) -> VerificationResult | None:
    """CAS the order to completed and apply it to its share. None if another call won.

    Raises:
        ConflictError: The share was already paid through another order.
    """
    now = datetime.now(timezone.utc)
    result = await db.execute(
        update(PaymentOrder)
        .where(PaymentOrder.id == record.id, PaymentOrder.status.in_(COMPLETABLE_STATUSES))
        .values(status="completed", gateway_payment_id=payment_id, completed_at=now)
    )
    if result.rowcount == 0:
        return None

    outcome = VerificationResult(
        kind=record.purpose,
        record_id=record.id,
        amount=record.amount,
        meeting_id=record.meeting_id,
        cab_booking_id=record.cab_booking_id,
    )

    if record.purpose == "meeting":
        await apply_payment_completion(db, record.meeting_id, record.payer_role, redis=redis)
        meeting = await db.get(Meeting, record.meeting_id, populate_existing=True)
        outcome.meeting_status = meeting.status
        partner_id = other_party(meeting, record.user_id)
        await create_notification(
            db, partner_id, "payment_completed", "Payment received",
            "Your match paid their share of the dinner.",
            related_user_id=record.user_id, meeting_id=meeting.id,
            data={"amount": record.amount, "role": record.payer_role},
            redis=redis,
        )
    else:
        await apply_cab_payment_completion(db, record.cab_booking_id, record.payer_role)
        booking = await db.get(CabBooking, record.cab_booking_id, populate_existing=True)
        outcome.cab_status = booking.status
        partner_id = booking.passenger_id if record.user_id == booking.user_id else booking.user_id
        if partner_id != record.user_id:
            await create_notification(
                db, partner_id, "payment_completed", "Cab payment received",
                "A share of your cab ride was paid.",
                related_user_id=record.user_id, meeting_id=booking.meeting_id,
                cab_booking_id=booking.id,
                data={"amount": record.amount, "role": record.payer_role},
                redis=redis,
            )

    logger.info(
        "payment_completed",
        payment_order_id=record.id,
        purpose=record.purpose,
        payment_id=payment_id,
        amount=record.amount,
    )
    return outcome


async def _complete_premium_purchase(
    db: AsyncSession,
    purchase: PremiumPurchase,
    payment_id: str,
    redis: Any | None,
) -> VerificationResult | None:
    """CAS the purchase to completed. None if another call won.

    Raises:
        ConflictError: Another purchase of the same access is already open or completed.
    """
    now = datetime.now(timezone.utc)
    try:
        result = await db.execute(
            update(PremiumPurchase)
            .where(PremiumPurchase.id == purchase.id, PremiumPurchase.status.in_(COMPLETABLE_STATUSES))
            .values(status="completed", gateway_payment_id=payment_id, completed_at=now)
        )
    except IntegrityError as exc:
        msg = "Access was already purchased"
        raise ConflictError(msg) from exc
    if result.rowcount == 0:
        return None

    target = await db.get(User, purchase.target_user_id)
    data = unlocked_data(target, purchase.type) if target is not None else {}
    await create_notification(
        db, purchase.user_id, "premium_unlocked", "Contact unlocked",
        f"You unlocked {target.name if target and target.name else 'your match'}'s {purchase.type} details.",
        related_user_id=purchase.target_user_id,
        data={"type": purchase.type},
        redis=redis,
    )
    logger.info(
        "premium_purchase_completed",
        purchase_id=purchase.id,
        type=purchase.type,
        payment_id=payment_id,
    )
    return VerificationResult(kind="premium", record_id=purchase.id, amount=purchase.amount, data=data)


async def _find_order(
    db: AsyncSession,
    order_id: str,
    user_id: int | None = None,
    statuses: tuple[str, ...] | None = COMPLETABLE_STATUSES,
) -> PaymentOrder | PremiumPurchase | None:
    """The local record owning a gateway order id, payment orders first."""
    for model in (PaymentOrder, PremiumPurchase):
        stmt = select(model).where(model.gateway_order_id == order_id)
        if user_id is not None:
            stmt = stmt.where(model.user_id == user_id)
        if statuses is not None:
            stmt = stmt.where(model.status.in_(statuses))
        result = await db.execute(stmt)
        record = result.scalar_one_or_none()
        if record is not None:
            return record
    return None


async def _complete(
    db: AsyncSession,
    record: PaymentOrder | PremiumPurchase,
    payment_id: str,
    redis: Any | None,
) -> VerificationResult | None:
    if isinstance(record, PremiumPurchase):
        return await _complete_premium_purchase(db, record, payment_id, redis)
    return await _complete_payment_order(db, record, payment_id, redis)


# ---------------------------------------------------------------------------
# Client verification
# ---------------------------------------------------------------------------


async def verify_payment(
    db: AsyncSession,
    gateway: PaymentGateway,
    user: User,
    order_id: str,
    payment_id: str,
    signature: str,
    redis: Any | None = None,
) -> VerificationResult:
    """
    Complete the caller's open (pending or failed) order after checkout.

    The signature is checked before anything is read, then the gateway is
    asked independently whether the payment was captured for this order.

    Raises:
        InvalidSignatureError: Signature mismatch.
        NotFoundError: No open order with this id for the caller.
        InvalidInputError: Payment not captured or not for this order.
        ConflictError: A concurrent call completed the order first, or the
            share it pays for is already paid.
        UpstreamError: The gateway failed.
    """
    secret = get_settings().gateway_key_secret
    if not verify_signature(order_id, payment_id, signature, secret):
        logger.warning("payment_signature_invalid", user_id=user.id, order_id=order_id)
        msg = "Invalid payment signature"
        raise InvalidSignatureError(msg)

    record = await _find_order(db, order_id, user_id=user.id)
    if record is None:
        msg = "Payment order not found or already processed"
        raise NotFoundError(msg)

    payment = await gateway.fetch_payment(payment_id)
    if payment.status != "captured":
        msg = f"Payment not captured (status: {payment.status})"
        raise InvalidInputError(msg)
    if payment.order_id != order_id:
        msg = "Payment does not belong to this order"
        raise InvalidInputError(msg)

    outcome = await _complete(db, record, payment_id, redis)
    if outcome is None:
        msg = "Payment already processed"
        raise ConflictError(msg)

    logger.info("payment_verified", user_id=user.id, order_id=order_id, kind=outcome.kind)
    return outcome


# ---------------------------------------------------------------------------
# Webhook
# ---------------------------------------------------------------------------


async def handle_webhook(
    db: AsyncSession,
    payload: dict[str, Any],
    signature_header: str | None,
    redis: Any | None = None,
) -> dict[str, str]:
    """
    Apply a gateway event.

    ``payment.captured`` completes a pending or failed record (a failed
    attempt can be retried on the same order); the signed event is the
    confirmation, so the gateway is not queried again. A capture for a share
    or access already settled through another order leaves the record
    ``failed`` with ``duplicate_payment``. ``payment.failed`` marks the
    pending record failed with the gateway's error. Any other event is
    acknowledged unchanged.

    Raises:
        InvalidInputError: Payment event without signature or payment entity.
        InvalidSignatureError: Signature mismatch.
        NotFoundError: No local record owns the order.
    """
    event = payload.get("event")
    if event not in HANDLED_EVENTS:
        logger.info("webhook_event_ignored", gateway_event=event)
        return {"status": "ignored"}

    if not signature_header:
        msg = "Missing webhook signature"
        raise InvalidInputError(msg)

    try:
        entity = payload["payload"]["payment"]["entity"]
        order_id = str(entity["order_id"])
        payment_id = str(entity["id"])
    except (KeyError, TypeError) as exc:
        msg = "Malformed payment event"
        raise InvalidInputError(msg) from exc

    secret = get_settings().gateway_key_secret
    if not verify_signature(order_id, payment_id, signature_header, secret):
        logger.warning("webhook_signature_invalid", gateway_event=event, order_id=order_id)
        msg = "Invalid webhook signature"
        raise InvalidSignatureError(msg)

    record = await _find_order(db, order_id, statuses=None)
    if record is None:
        logger.warning("webhook_order_unknown", gateway_event=event, order_id=order_id)
        msg = "Order not found"
        raise NotFoundError(msg)
    if record.status == "completed" or (event == "payment.failed" and record.status == "failed"):
        logger.info("webhook_order_already_processed", gateway_event=event, order_id=order_id, status=record.status)
        return {"status": "already_processed"}

    model, record_id = type(record), record.id
    if event == "payment.captured":
        try:
            outcome = await _complete(db, record, payment_id, redis)
        except ConflictError as exc:
            # The payer's share or access was settled through another order.
            await db.rollback()
            await _mark_failed(db, model, record_id, payment_id, "duplicate_payment", exc.detail)
            logger.warning("webhook_duplicate_payment", order_id=order_id, payment_id=payment_id, detail=exc.detail)
            return {"status": "duplicate"}
        if outcome is None:
            return {"status": "already_processed"}
        logger.info("webhook_payment_captured", order_id=order_id, payment_id=payment_id, kind=outcome.kind)
        return {"status": "completed"}

    error_code = entity.get("error_code")
    error_description = entity.get("error_description")
    await _mark_failed(db, model, record_id, payment_id, error_code, error_description)
    logger.warning(
        "webhook_payment_failed",
        order_id=order_id,
        payment_id=payment_id,
        error_code=error_code,
        error_description=error_description,
    )
    return {"status": "failed"}


async def _mark_failed(
    db: AsyncSession,
    model: type[PaymentOrder] | type[PremiumPurchase],
    record_id: int,
    payment_id: str,
    error_code: str | None,
    error_description: str | None,
) -> None:
    await db.execute(
        update(model)
        .where(model.id == record_id, model.status.in_(COMPLETABLE_STATUSES))
        .values(
            status="failed",
            gateway_payment_id=payment_id,
            error_code=error_code,
            error_description=error_description,
        )
    )

"""Premium access gate.

A buyer sees a target's phone number or LinkedIn URL iff a completed
``PremiumPurchase`` exists for that exact (buyer, target, type). The value is
always read from the target's profile at request time, so edits show up
immediately for everyone who unlocked it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.config import get_settings
from corpdate.db.locking import lock_user_pair
from corpdate.db.models import PREMIUM_TYPES, PremiumPurchase, User
from corpdate.errors import ConflictError, InvalidInputError, NotFoundError
from corpdate.payments.gateway import GatewayOrder, PaymentGateway

logger = structlog.get_logger()

# purchase type -> User column holding the unlocked value
_ATTRIBUTES = {"phone": "phone_number", "linkedin": "linkedin_url"}


def premium_price(type_: str) -> int:
    settings = get_settings()
    prices = {"phone": settings.premium_price_phone, "linkedin": settings.premium_price_linkedin}
    if type_ not in prices:
        msg = f"Invalid purchase type: {type_}. Must be one of {list(PREMIUM_TYPES)}"
        raise InvalidInputError(msg)
    return prices[type_]


def unlocked_data(target: User, type_: str) -> dict[str, str]:
    """The attribute a purchase unlocks, keyed by column name. Empty if unset."""
    column = _ATTRIBUTES[type_]
    value = getattr(target, column)
    return {column: value} if value else {}


async def purchase_access(
    db: AsyncSession,
    gateway: PaymentGateway,
    buyer: User,
    target_user_id: int,
    type_: str,
) -> tuple[PremiumPurchase, GatewayOrder]:
    """
    Open a pending purchase and its gateway order.

    The buyer and target rows are locked first, so concurrent purchases of
    the same access serialize; the partial unique index on open purchases
    backs this up where row locks are unavailable. The gateway order is
    created before the row is added, so a gateway failure leaves nothing
    behind.

    Raises:
        InvalidInputError: Unknown type, or buying your own details.
        NotFoundError: Target does not exist.
        ConflictError: A completed or pending purchase already exists.
        UpstreamError: The gateway failed.
    """
    amount = premium_price(type_)
    if target_user_id == buyer.id:
        msg = "You cannot purchase your own contact details"
        raise InvalidInputError(msg)

    users = await lock_user_pair(db, buyer.id, target_user_id)
    if target_user_id not in users:
        msg = "User not found"
        raise NotFoundError(msg)

    result = await db.execute(
        select(PremiumPurchase.status).where(
            PremiumPurchase.user_id == buyer.id,
            PremiumPurchase.target_user_id == target_user_id,
            PremiumPurchase.type == type_,
            PremiumPurchase.status.in_(("pending", "completed")),
        )
    )
    statuses = set(result.scalars().all())
    if "completed" in statuses:
        msg = "You already have access to this information"
        raise ConflictError(msg)
    if "pending" in statuses:
        msg = "A purchase for this information is already pending"
        raise ConflictError(msg)

    currency = get_settings().currency
    order = await gateway.create_order(
        amount,
        currency,
        receipt=f"premium_{buyer.id}_{target_user_id}_{type_}_{int(datetime.now(timezone.utc).timestamp())}",
        notes={"user_id": str(buyer.id), "target_user_id": str(target_user_id), "type": type_},
    )

    purchase = PremiumPurchase(
        user_id=buyer.id,
        target_user_id=target_user_id,
        type=type_,
        amount=amount,
        currency=currency,
        status="pending",
        gateway_order_id=order.id,
        created_at=datetime.now(timezone.utc),
    )
    db.add(purchase)
    try:
        await db.flush()
    except IntegrityError as exc:
        logger.warning("premium_purchase_race_lost", user_id=buyer.id, target_user_id=target_user_id, type=type_)
        await db.rollback()
        msg = "A purchase for this information is already pending"
        raise ConflictError(msg) from exc

    logger.info(
        "premium_purchase_created",
        purchase_id=purchase.id,
        user_id=buyer.id,
        target_user_id=target_user_id,
        type=type_,
        amount=amount,
        order_id=order.id,
    )
    return purchase, order


async def check_access(db: AsyncSession, buyer_id: int, target_user_id: int) -> dict[str, Any]:
    """
    Which of the target's contact details the buyer has unlocked, with the
    current values.

    Raises:
        NotFoundError: Target does not exist.
    """
    target = await db.get(User, target_user_id)
    if target is None:
        msg = "User not found"
        raise NotFoundError(msg)

    result = await db.execute(
        select(PremiumPurchase.type).where(
            PremiumPurchase.user_id == buyer_id,
            PremiumPurchase.target_user_id == target_user_id,
            PremiumPurchase.status == "completed",
        )
    )
    unlocked = set(result.scalars().all())

    has_phone = "phone" in unlocked
    has_linkedin = "linkedin" in unlocked
    return {
        "has_access_to_phone": has_phone,
        "has_access_to_linkedin": has_linkedin,
        "phone_number": target.phone_number if has_phone else None,
        "linkedin_url": target.linkedin_url if has_linkedin else None,
    }

"""Phone verification flow."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.db.models import User
from corpdate.errors import ConflictError, InvalidInputError
from corpdate.verification.phone import validate_phone
from corpdate.verification.providers import BaseOTPProvider

logger = structlog.get_logger()


async def _phone_taken_by_other(db: AsyncSession, phone: str, user_id: int) -> bool:
    result = await db.execute(
        select(User.id).where(User.phone_number == phone, User.id != user_id).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def send_otp(
    db: AsyncSession,
    provider: BaseOTPProvider,
    phone: str,
    current_user: User | None = None,
) -> dict[str, Any]:
    """
    Send a code to ``phone``. Anonymous callers are registering; signed-in
    callers are linking a phone to their account.

    Raises:
        InvalidInputError: Malformed number or the provider refused it.
        ConflictError: The number is linked to another account.
        UpstreamError: Provider failure.
    """
    normalized = validate_phone(phone)
    if current_user is not None and await _phone_taken_by_other(db, normalized, current_user.id):
        msg = "Phone number is already registered to another account"
        raise ConflictError(msg)

    result = await provider.send_otp(normalized)
    if not result.success:
        msg = "Failed to send OTP"
        raise InvalidInputError(msg)
    logger.info("otp_sent", user_id=current_user.id if current_user else None)
    return {"success": True, "verification_id": result.verification_id}


async def verify_otp(
    db: AsyncSession,
    provider: BaseOTPProvider,
    verification_id: str,
    otp: str,
    phone: str,
    current_user: User | None = None,
) -> dict[str, Any]:
    """
    Check a code. Signed-in callers get the phone linked to their account;
    anonymous callers get the verified phone back to finish registration.

    Raises:
        InvalidInputError: Malformed number or wrong/expired code.
        ConflictError: The number is linked to another account.
    """
    normalized = validate_phone(phone)
    if not await provider.verify_otp(verification_id, otp, normalized):
        msg = "Invalid or expired verification code"
        raise InvalidInputError(msg)

    if current_user is None:
        return {"success": True, "phone_data": {"phone_number": normalized, "verified": True}}

    if await _phone_taken_by_other(db, normalized, current_user.id):
        msg = "Phone number is already registered to another account"
        raise ConflictError(msg)

    now = datetime.now(timezone.utc)
    current_user.phone_number = normalized
    current_user.phone_verified = True
    current_user.phone_verified_at = now
    current_user.updated_at = now
    await db.flush()
    logger.info("phone_verified", user_id=current_user.id)
    return {
        "success": True,
        "user": {
            "id": current_user.id,
            "email": current_user.email,
            "name": current_user.name,
            "phone_number": normalized,
            "phone_verified": True,
        },
    }


def verification_status(user: User) -> dict[str, Any]:
    return {
        "verified": bool(user.phone_verified),
        "phone_number": user.phone_number,
        "verified_at": user.phone_verified_at,
        "last_updated": user.updated_at,
    }

"""Phone verification endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.auth.dependencies import get_current_user, get_optional_user
from corpdate.database import get_session
from corpdate.db.models import User
from corpdate.dependencies import get_otp
from corpdate.verification.providers import BaseOTPProvider
from corpdate.verification.schemas import (
    SendOTPRequest,
    SendOTPResponse,
    VerificationStatusResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)
from corpdate.verification.service import send_otp, verification_status, verify_otp

router = APIRouter(prefix="/api/v1/phone-verification", tags=["Phone verification"])


@router.post("/send-otp", response_model=SendOTPResponse)
async def send(
    body: SendOTPRequest,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
    provider: BaseOTPProvider = Depends(get_otp),
) -> SendOTPResponse:
    """Send a code. Works signed out (registration) and signed in (linking)."""
    return SendOTPResponse(**await send_otp(db, provider, body.phone_number, user))


@router.post("/verify-otp", response_model=VerifyOTPResponse)
async def verify(
    body: VerifyOTPRequest,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
    provider: BaseOTPProvider = Depends(get_otp),
) -> VerifyOTPResponse:
    result = await verify_otp(db, provider, body.verification_id, body.otp, body.phone_number, user)
    await db.commit()
    return VerifyOTPResponse(**result)


@router.get("/status", response_model=VerificationStatusResponse)
async def status(user: User = Depends(get_current_user)) -> VerificationStatusResponse:
    return VerificationStatusResponse(**verification_status(user))

"""Payment endpoints: order creation, client verification, gateway webhook."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.auth.dependencies import get_current_user
from corpdate.config import get_settings
from corpdate.database import get_session
from corpdate.db.models import User
from corpdate.dependencies import get_gateway, get_publisher
from corpdate.errors import InvalidInputError
from corpdate.payments.gateway import PaymentGateway
from corpdate.payments.schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from corpdate.payments.service import create_payment_order, handle_webhook, verify_payment

router = APIRouter(prefix="/api/v1/payments", tags=["Payments"])


@router.post("/orders", response_model=CreateOrderResponse, status_code=201)
async def create_order(
    body: CreateOrderRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_gateway),
) -> CreateOrderResponse:
    """Open a gateway order for the caller's meeting or cab share."""
    record, order = await create_payment_order(
        db, gateway, user, body.purpose, meeting_id=body.meeting_id, cab_booking_id=body.cab_booking_id,
    )
    await db.commit()
    return CreateOrderResponse(
        payment_order_id=record.id,
        order_id=order.id,
        amount=record.amount,
        currency=record.currency,
        payer_role=record.payer_role,
        key_id=get_settings().gateway_key_id,
    )


@router.post("/verify", response_model=VerifyPaymentResponse)
async def verify(
    body: VerifyPaymentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_gateway),
    redis: Any = Depends(get_publisher),
) -> VerifyPaymentResponse:
    """Confirm a checkout with the gateway-signed identifiers."""
    outcome = await verify_payment(
        db, gateway, user, body.order_id, body.payment_id, body.signature, redis=redis,
    )
    await db.commit()
    return VerifyPaymentResponse(**asdict(outcome))


@router.post("/webhook")
async def webhook(
    request: Request,
    x_razorpay_signature: str | None = Header(None),
    db: AsyncSession = Depends(get_session),
    redis: Any = Depends(get_publisher),
) -> dict[str, str]:
    """Gateway event receiver. Unauthenticated; trust comes from the signature."""
    try:
        payload = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        msg = "Invalid JSON body"
        raise InvalidInputError(msg) from exc
    if not isinstance(payload, dict):
        msg = "Invalid event payload"
        raise InvalidInputError(msg)

    result = await handle_webhook(db, payload, x_razorpay_signature, redis=redis)
    await db.commit()
    return result

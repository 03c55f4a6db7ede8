"""Payment request/response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CreateOrderRequest(BaseModel):
    purpose: str = Field(..., pattern="^(meeting|cab)$")
    meeting_id: int | None = None
    cab_booking_id: int | None = None


class CreateOrderResponse(BaseModel):
    """Checkout handle for the client."""

    payment_order_id: int
    order_id: str
    amount: int
    currency: str
    payer_role: str
    key_id: str


class VerifyPaymentRequest(BaseModel):
    order_id: str = Field(..., min_length=1)
    payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)


class VerifyPaymentResponse(BaseModel):
    success: bool = True
    kind: str
    record_id: int
    amount: int
    status: str
    meeting_id: int | None = None
    meeting_status: str | None = None
    cab_booking_id: int | None = None
    cab_status: str | None = None
    data: dict[str, Any] = {}

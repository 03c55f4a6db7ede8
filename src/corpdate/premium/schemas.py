"""Premium access schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PurchaseRequest(BaseModel):
    target_user_id: int
    type: str = Field(..., pattern="^(phone|linkedin)$")


class PurchaseResponse(BaseModel):
    """Everything the client needs to open the gateway checkout."""

    purchase_id: int
    order_id: str
    amount: int
    currency: str
    key_id: str


class AccessResponse(BaseModel):
    has_access_to_phone: bool
    has_access_to_linkedin: bool
    phone_number: str | None = None
    linkedin_url: str | None = None

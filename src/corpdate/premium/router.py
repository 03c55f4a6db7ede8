"""Premium purchase and access endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.auth.dependencies import get_current_user
from corpdate.config import get_settings
from corpdate.database import get_session
from corpdate.db.models import User
from corpdate.dependencies import get_gateway
from corpdate.payments.gateway import PaymentGateway
from corpdate.premium.schemas import AccessResponse, PurchaseRequest, PurchaseResponse
from corpdate.premium.service import check_access, purchase_access

router = APIRouter(prefix="/api/v1/premium", tags=["Premium"])


@router.post("/purchase", response_model=PurchaseResponse, status_code=201)
async def purchase(
    body: PurchaseRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_gateway),
) -> PurchaseResponse:
    """Start a purchase; complete it through /payments/verify or the webhook."""
    record, order = await purchase_access(db, gateway, user, body.target_user_id, body.type)
    await db.commit()
    return PurchaseResponse(
        purchase_id=record.id,
        order_id=order.id,
        amount=record.amount,
        currency=record.currency,
        key_id=get_settings().gateway_key_id,
    )


@router.get("/access/{target_user_id}", response_model=AccessResponse)
async def access(
    target_user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AccessResponse:
    """Unlocked contact details of a member."""
    return AccessResponse(**await check_access(db, user.id, target_user_id))

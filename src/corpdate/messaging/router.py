"""Messaging endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.auth.dependencies import get_current_user
from corpdate.database import get_session
from corpdate.db.models import User
from corpdate.dependencies import get_publisher
from corpdate.messaging.schemas import ConversationResponse, MessageResponse, SendMessageRequest
from corpdate.messaging.service import get_conversation, send_message

router = APIRouter(prefix="/api/v1/messages", tags=["Messages"])


@router.post("", response_model=MessageResponse, status_code=201)
async def send(
    body: SendMessageRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: Any = Depends(get_publisher),
) -> MessageResponse:
    message = await send_message(db, user, body.receiver_id, body.content, redis=redis)
    await db.commit()
    return MessageResponse.model_validate(message)


@router.get("/{other_user_id}", response_model=ConversationResponse)
async def conversation(
    other_user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ConversationResponse:
    """Conversation with a mutual match, oldest first."""
    messages = await get_conversation(db, user.id, other_user_id)
    await db.commit()
    return ConversationResponse(messages=[MessageResponse.model_validate(m) for m in messages])

"""Messaging between mutually matched users."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.db.models import Message, User
from corpdate.errors import ForbiddenError
from corpdate.matching.service import are_matched
from corpdate.notifications.service import create_notification

logger = structlog.get_logger()

PREVIEW_LENGTH = 80


async def _require_match(db: AsyncSession, first_id: int, second_id: int) -> None:
    if not await are_matched(db, first_id, second_id):
        msg = "Users are not matched"
        raise ForbiddenError(msg)


async def send_message(
    db: AsyncSession,
    sender: User,
    receiver_id: int,
    content: str,
    redis: Any | None = None,
) -> Message:
    """
    Send a message to a mutual match.

    Raises:
        ForbiddenError: The users are not mutually matched.
    """
    await _require_match(db, sender.id, receiver_id)

    message = Message(
        sender_id=sender.id,
        receiver_id=receiver_id,
        content=content,
        is_read=False,
        created_at=datetime.now(timezone.utc),
    )
    db.add(message)
    await db.flush()

    preview = content if len(content) <= PREVIEW_LENGTH else content[: PREVIEW_LENGTH - 3] + "..."
    await create_notification(
        db, receiver_id, "new_message", f"New message from {sender.name or 'your match'}",
        preview, related_user_id=sender.id, data={"message_id": message.id}, redis=redis,
    )
    logger.info("message_sent", message_id=message.id, sender_id=sender.id, receiver_id=receiver_id)
    return message


async def get_conversation(db: AsyncSession, user_id: int, other_user_id: int) -> list[Message]:
    """
    Messages between two mutual matches, oldest first. Marks the caller's
    received messages as read.

    Raises:
        ForbiddenError: The users are not mutually matched.
    """
    await _require_match(db, user_id, other_user_id)

    await db.execute(
        update(Message)
        .where(
            Message.sender_id == other_user_id,
            Message.receiver_id == user_id,
            Message.is_read.is_(False),
        )
        .values(is_read=True)
    )

    result = await db.execute(
        select(Message)
        .where(
            or_(
                and_(Message.sender_id == user_id, Message.receiver_id == other_user_id),
                and_(Message.sender_id == other_user_id, Message.receiver_id == user_id),
            )
        )
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    return list(result.scalars().all())

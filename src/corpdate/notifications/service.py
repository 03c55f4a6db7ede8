"""Notification creation and delivery service.

Notifications are:
1. Persisted in the database
2. Published on ``ws:user:{id}`` (Redis pub/sub); the WebSocket bridge
   forwards them to the user's open sockets

Publishing is best-effort. A failed publish is logged and never rolls back
the workflow that produced the notification.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.db.models import Notification
from corpdate.errors import NotFoundError
from corpdate.redis_client import user_channel

logger = structlog.get_logger()

NOTIFICATION_TYPES = frozenset({
    "new_match",
    "new_message",
    "meeting_created",
    "meeting_confirmed",
    "meeting_cancelled",
    "meeting_completed",
    "cab_booked",
    "payment_completed",
    "premium_unlocked",
})


def notification_payload(notification: Notification) -> dict[str, Any]:
    """Wire form shared by the REST listing and the pub/sub event."""
    return {
        "id": notification.id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "related_user_id": notification.related_user_id,
        "meeting_id": notification.meeting_id,
        "cab_booking_id": notification.cab_booking_id,
        "data": notification.data or {},
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
    }


async def publish_notification(redis: Any | None, notification: Notification) -> None:
    """Publish a flushed notification to its user's channel."""
    if redis is None:
        return
    event = {"event": "notification", "data": notification_payload(notification)}
    try:
        await redis.publish(user_channel(notification.user_id), json.dumps(event))
    except Exception:
        logger.warning(
            "notification_publish_failed",
            user_id=notification.user_id,
            notification_id=notification.id,
            exc_info=True,
        )


async def create_notification(
    db: AsyncSession,
    user_id: int,
    type_: str,
    title: str,
    message: str,
    related_user_id: int | None = None,
    meeting_id: int | None = None,
    cab_booking_id: int | None = None,
    data: dict[str, Any] | None = None,
    redis: Any | None = None,
) -> Notification:
    """Persist a notification and push it to the user's channel."""
    if type_ not in NOTIFICATION_TYPES:
        msg = f"Invalid notification type: {type_}"
        raise ValueError(msg)

    notification = Notification(
        user_id=user_id,
        type=type_,
        title=title,
        message=message,
        related_user_id=related_user_id,
        meeting_id=meeting_id,
        cab_booking_id=cab_booking_id,
        data=data or {},
        is_read=False,
        created_at=datetime.now(timezone.utc),
    )
    db.add(notification)
    await db.flush()

    await publish_notification(redis, notification)
    return notification


async def list_notifications(
    db: AsyncSession,
    user_id: int,
    limit: int = 20,
    offset: int = 0,
    unread_only: bool = False,
) -> tuple[list[Notification], int, int]:
    """Return (page, total matching the filter, unread count), newest first."""
    filters = [Notification.user_id == user_id]
    if unread_only:
        filters.append(Notification.is_read.is_(False))

    total_result = await db.execute(
        select(func.count()).select_from(Notification).where(*filters)
    )
    total = total_result.scalar_one()

    result = await db.execute(
        select(Notification)
        .where(*filters)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(limit)
    )
    notifications = list(result.scalars().all())
    return notifications, total, await get_unread_count(db, user_id)


async def mark_as_read(db: AsyncSession, user_id: int, notification_id: int) -> None:
    """Mark one of the caller's notifications as read.

    Raises:
        NotFoundError: The notification does not exist or is not the caller's.
    """
    result = await db.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(is_read=True, read_at=datetime.now(timezone.utc))
    )
    if result.rowcount == 0:
        msg = "Notification not found"
        raise NotFoundError(msg)


async def mark_all_as_read(db: AsyncSession, user_id: int) -> int:
    """Mark every unread notification as read. Returns how many changed."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True, read_at=datetime.now(timezone.utc))
    )
    return result.rowcount


async def get_unread_count(db: AsyncSession, user_id: int) -> int:
    """Count unread notifications."""
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
    )
    return result.scalar_one()

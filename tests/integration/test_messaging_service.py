"""Integration tests for messaging between matches."""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.db.models import Message, Notification
from corpdate.errors import ForbiddenError
from corpdate.matching.service import record_like
from corpdate.messaging.service import get_conversation, send_message


@pytest.fixture
def matched(db: AsyncSession, couple):
    async def _matched():
        a, b = await couple()
        await record_like(db, a.id, b.id)
        await record_like(db, b.id, a.id)
        await db.commit()
        return a, b

    return _matched


class TestSend:
    @pytest.mark.asyncio
    async def test_matched_users_can_message(self, db: AsyncSession, matched) -> None:
        a, b = await matched()
        message = await send_message(db, a, b.id, "Dinner on Friday?")
        await db.commit()

        assert message.is_read is False
        result = await db.execute(
            select(Notification).where(Notification.user_id == b.id, Notification.type == "new_message")
        )
        [note] = result.scalars().all()
        assert note.message == "Dinner on Friday?"
        assert note.data == {"message_id": message.id}

    @pytest.mark.asyncio
    async def test_long_message_preview_is_truncated(self, db: AsyncSession, matched) -> None:
        a, b = await matched()
        await send_message(db, a, b.id, "x" * 200)
        await db.commit()
        result = await db.execute(select(Notification.message).where(Notification.type == "new_message"))
        preview = result.scalar_one()
        assert len(preview) == 80
        assert preview.endswith("...")

    @pytest.mark.asyncio
    async def test_one_sided_like_is_not_enough(self, db: AsyncSession, couple) -> None:
        a, b = await couple()
        await record_like(db, a.id, b.id)
        await db.commit()
        with pytest.raises(ForbiddenError):
            await send_message(db, a, b.id, "hello?")
        assert (await db.execute(select(Message))).scalars().all() == []


class TestConversation:
    @pytest.mark.asyncio
    async def test_oldest_first_and_marks_received_read(self, db: AsyncSession, matched) -> None:
        a, b = await matched()
        first = await send_message(db, a, b.id, "hi")
        second = await send_message(db, b, a.id, "hello")
        third = await send_message(db, a, b.id, "dinner?")
        await db.commit()

        conversation = await get_conversation(db, b.id, a.id)
        await db.commit()
        assert [m.id for m in conversation] == [first.id, second.id, third.id]

        for message in (first, second, third):
            await db.refresh(message)
        assert first.is_read and third.is_read
        assert second.is_read is False

    @pytest.mark.asyncio
    async def test_strangers(self, db: AsyncSession, couple) -> None:
        a, b = await couple()
        with pytest.raises(ForbiddenError):
            await get_conversation(db, a.id, b.id)

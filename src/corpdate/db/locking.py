"""Row locks that serialize workflows touching two users."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.db.models import User


async def lock_user_pair(db: AsyncSession, first_id: int, second_id: int) -> dict[int, User]:
    """Lock both user rows (ascending id order) for the rest of the transaction.

    Two requests for the same pair always acquire the locks in the same order,
    so reciprocal likes and duplicate meeting proposals serialize instead of
    deadlocking. SQLite ignores FOR UPDATE; its writer lock serializes instead.

    Returns the users that exist, keyed by id.
    """
    result = await db.execute(
        select(User)
        .where(User.id.in_({first_id, second_id}))
        .order_by(User.id)
        .with_for_update()
    )
    return {user.id: user for user in result.scalars().all()}

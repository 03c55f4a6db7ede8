"""Notification API integration tests."""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.notifications.service import create_notification


async def _seed(db: AsyncSession, user_id: int, count: int) -> list[int]:
    ids = []
    for i in range(count):
        note = await create_notification(db, user_id, "new_match", f"Match {i}", "You have a new match")
        ids.append(note.id)
    await db.commit()
    return ids


@pytest.mark.asyncio
async def test_list_and_paginate(client: AsyncClient, db: AsyncSession, make_user, headers) -> None:
    user = await make_user()
    ids = await _seed(db, user.id, 3)

    r = await client.get("/api/v1/notifications", params={"limit": 2}, headers=headers(user))
    assert r.status_code == 200
    body = r.json()
    assert [n["id"] for n in body["notifications"]] == [ids[2], ids[1]]
    assert body["total"] == 3
    assert body["unread_count"] == 3
    assert body["has_more"] is True

    r = await client.get("/api/v1/notifications", params={"limit": 2, "offset": 2}, headers=headers(user))
    assert r.json()["has_more"] is False


@pytest.mark.asyncio
async def test_mark_read(client: AsyncClient, db: AsyncSession, make_user, headers) -> None:
    user, other = await make_user(), await make_user()
    ids = await _seed(db, user.id, 2)
    [theirs] = await _seed(db, other.id, 1)

    r = await client.post(f"/api/v1/notifications/{ids[0]}/read", headers=headers(user))
    assert r.status_code == 200
    r = await client.get("/api/v1/notifications/unread-count", headers=headers(user))
    assert r.json() == {"count": 1}

    r = await client.post(f"/api/v1/notifications/{theirs}/read", headers=headers(user))
    assert r.status_code == 404

    r = await client.get("/api/v1/notifications", params={"unread_only": True}, headers=headers(user))
    assert [n["id"] for n in r.json()["notifications"]] == [ids[1]]


@pytest.mark.asyncio
async def test_mark_all_read(client: AsyncClient, db: AsyncSession, make_user, headers) -> None:
    user = await make_user()
    await _seed(db, user.id, 4)

    r = await client.post("/api/v1/notifications/read-all", headers=headers(user))
    assert r.status_code == 200
    assert r.json()["detail"] == "Marked 4 notifications as read"

    r = await client.get("/api/v1/notifications/unread-count", headers=headers(user))
    assert r.json() == {"count": 0}


@pytest.mark.asyncio
async def test_requires_auth(client: AsyncClient) -> None:
    r = await client.get("/api/v1/notifications")
    assert r.status_code == 401

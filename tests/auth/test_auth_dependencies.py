"""Tests for bearer authentication on protected endpoints."""

from collections.abc import Awaitable, Callable

import pytest
from httpx import AsyncClient

from corpdate.auth.jwt import create_access_token
from corpdate.db.models import User


@pytest.mark.asyncio
async def test_missing_token(client: AsyncClient) -> None:
    response = await client.get("/api/v1/users/me")
    assert response.status_code == 401
    assert response.json()["code"] == "unauthorized"


@pytest.mark.asyncio
async def test_invalid_token(client: AsyncClient) -> None:
    response = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 401
    assert response.json()["code"] == "unauthorized"


@pytest.mark.asyncio
async def test_token_for_unknown_user(client: AsyncClient) -> None:
    token = create_access_token(999_999, "ghost@example.com")
    response = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_deactivated_user(
    client: AsyncClient,
    make_user: Callable[..., Awaitable[User]],
    headers: Callable[[User], dict[str, str]],
) -> None:
    user = await make_user(is_active=False)
    response = await client.get("/api/v1/users/me", headers=headers(user))
    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"


@pytest.mark.asyncio
async def test_valid_token(
    client: AsyncClient,
    make_user: Callable[..., Awaitable[User]],
    headers: Callable[[User], dict[str, str]],
) -> None:
    user = await make_user(email="me@example.com")
    response = await client.get("/api/v1/users/me", headers=headers(user))
    assert response.status_code == 200
    assert response.json()["email"] == "me@example.com"

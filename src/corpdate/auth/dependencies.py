"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.auth.jwt import verify_token
from corpdate.database import get_session
from corpdate.db.models import User
from corpdate.errors import ForbiddenError, UnauthorizedError
from corpdate.users.service import get_user_by_id

_bearer = HTTPBearer(auto_error=False)


async def _resolve_user(token: str, db: AsyncSession) -> User:
    try:
        payload = verify_token(token)
    except jwt.InvalidTokenError as e:
        raise UnauthorizedError(str(e)) from e

    user = await get_user_by_id(db, int(payload["sub"]))
    if user is None:
        raise UnauthorizedError("User not found")
    if not user.is_active:
        raise ForbiddenError("Account is deactivated")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Extract and verify the bearer token, return the User.

    Rejects the request before any workflow logic runs.
    """
    if credentials is None:
        raise UnauthorizedError("Not authenticated")
    return await _resolve_user(credentials.credentials, db)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User | None:
    """Like get_current_user, but anonymous callers get None instead of a 401."""
    if credentials is None:
        return None
    return await _resolve_user(credentials.credentials, db)

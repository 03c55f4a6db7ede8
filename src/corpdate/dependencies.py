"""Shared FastAPI dependencies.

Vendor collaborators are resolved through these functions so tests can swap
them with ``app.dependency_overrides``.
"""

from collections.abc import AsyncGenerator
from typing import Any

from corpdate.cabs.estimator import RideEstimator, get_ride_estimator
from corpdate.database import get_session as _get_session
from corpdate.payments.gateway import PaymentGateway, get_payment_gateway
from corpdate.redis_client import get_redis_or_none
from corpdate.verification.providers import BaseOTPProvider, get_otp_provider

get_db = _get_session


async def get_publisher() -> AsyncGenerator[Any, None]:
    """Yield the Redis client used for notification fan-out, or None without Redis."""
    yield get_redis_or_none()


def get_gateway() -> PaymentGateway:
    return get_payment_gateway()


def get_estimator() -> RideEstimator:
    return get_ride_estimator()


def get_otp() -> BaseOTPProvider:
    return get_otp_provider()

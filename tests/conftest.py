"""Shared test fixtures."""

from __future__ import annotations

import itertools
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.auth.jwt import create_access_token
from corpdate.config import get_settings
from corpdate.database import close_db, get_engine, get_session, init_db
from corpdate.db.base import Base
from corpdate.db.models import Restaurant, User
from corpdate.dependencies import get_gateway, get_otp, get_publisher
from corpdate.errors import UpstreamError
from corpdate.main import create_app
from corpdate.payments.gateway import GatewayOrder, GatewayPayment, PaymentGateway, compute_signature
from corpdate.verification.providers import BaseOTPProvider, OTPSendResult

GATEWAY_KEY_ID = "rzp_test_key"
GATEWAY_SECRET = "test_gateway_secret"
JWT_SECRET = "test-jwt-secret-that-is-long-enough-for-hs256"
TEST_OTP = "123456"


class FakeRedis:
    """In-memory stand-in for the handful of Redis commands the app uses."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.published: list[tuple[str, str]] = []

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None, keepttl: bool = False) -> bool:
        self.store[key] = value
        if ex is not None:
            self.ttls[key] = ex
        elif not keepttl:
            self.ttls.pop(key, None)
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        return 1

    def channels(self) -> list[str]:
        return [channel for channel, _ in self.published]


class FakeGateway(PaymentGateway):
    """Records orders and serves payments registered with ``capture``."""

    def __init__(self) -> None:
        self.orders: dict[str, GatewayOrder] = {}
        self.payments: dict[str, GatewayPayment] = {}
        self.fail = False
        self._ids = itertools.count(1)

    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> GatewayOrder:
        if self.fail:
            msg = "Payment gateway unavailable"
            raise UpstreamError(msg)
        order = GatewayOrder(id=f"order_test{next(self._ids)}", amount=amount, currency=currency, receipt=receipt)
        self.orders[order.id] = order
        return order

    async def fetch_payment(self, payment_id: str) -> GatewayPayment:
        if self.fail or payment_id not in self.payments:
            msg = "Payment gateway returned 404"
            raise UpstreamError(msg)
        return self.payments[payment_id]

    def capture(self, order_id: str, status: str = "captured", paid_order_id: str | None = None) -> str:
        """Register a payment against ``order_id`` and return its id."""
        payment_id = f"pay_test{next(self._ids)}"
        order = self.orders.get(order_id)
        self.payments[payment_id] = GatewayPayment(
            id=payment_id,
            order_id=paid_order_id or order_id,
            status=status,
            amount=order.amount if order else 0,
            currency=order.currency if order else "INR",
        )
        return payment_id

    def sign(self, order_id: str, payment_id: str) -> str:
        return compute_signature(order_id, payment_id, GATEWAY_SECRET)


class FakeOTPProvider(BaseOTPProvider):
    """Accepts TEST_OTP for any verification id it issued for the same phone."""

    def __init__(self) -> None:
        self.sent: dict[str, str] = {}
        self._ids = itertools.count(1)

    async def send_otp(self, phone: str) -> OTPSendResult:
        verification_id = f"ver_{next(self._ids)}"
        self.sent[verification_id] = phone
        return OTPSendResult(success=True, verification_id=verification_id)

    async def verify_otp(self, verification_id: str, otp: str, phone: str) -> bool:
        return self.sent.get(verification_id) == phone and otp == TEST_OTP


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> Any:
    """Point every test at a throwaway SQLite file and fixed secrets."""
    monkeypatch.setenv("CORPDATE_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path}/test.db")
    monkeypatch.setenv("CORPDATE_JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("CORPDATE_GATEWAY_KEY_ID", GATEWAY_KEY_ID)
    monkeypatch.setenv("CORPDATE_GATEWAY_KEY_SECRET", GATEWAY_SECRET)
    monkeypatch.setenv("CORPDATE_LOG_FORMAT", "console")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[None, None]:
    """Create the schema on a fresh database."""
    await init_db(get_settings().database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db(db_engine: None) -> AsyncGenerator[AsyncSession, None]:
    """A session for arranging and inspecting data directly."""
    sessions = get_session()
    session = await sessions.__anext__()
    yield session
    await sessions.aclose()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def otp_provider() -> FakeOTPProvider:
    return FakeOTPProvider()


@pytest_asyncio.fixture
async def client(
    db_engine: None,
    gateway: FakeGateway,
    otp_provider: FakeOTPProvider,
    fake_redis: FakeRedis,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app with vendors swapped for fakes."""
    app = create_app()

    async def _publisher() -> AsyncGenerator[FakeRedis, None]:
        yield fake_redis

    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_otp] = lambda: otp_provider
    app.dependency_overrides[get_publisher] = _publisher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


_user_seq = itertools.count(1)


@pytest.fixture
def make_user(db: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory for committed users. Later users get later ``created_at`` values."""

    async def _make(**fields: Any) -> User:
        n = next(_user_seq)
        values: dict[str, Any] = {
            "email": f"user{n}@example.com",
            "name": f"User {n}",
            "gender": "male",
            "age": 30,
            "looking_for": "female",
            "is_profile_complete": True,
            "is_active": True,
            "created_at": datetime.now(timezone.utc) + timedelta(seconds=n),
        }
        values.update(fields)
        user = User(**values)
        db.add(user)
        await db.commit()
        return user

    return _make


@pytest.fixture
def make_restaurant(db: AsyncSession) -> Callable[..., Awaitable[Restaurant]]:
    async def _make(**fields: Any) -> Restaurant:
        values: dict[str, Any] = {
            "name": "The Table",
            "city": "Bengaluru",
            "cuisine": "Italian",
            "rating": 4.5,
            "is_active": True,
        }
        values.update(fields)
        restaurant = Restaurant(**values)
        db.add(restaurant)
        await db.commit()
        return restaurant

    return _make


@pytest.fixture
def couple(make_user: Callable[..., Awaitable[User]]) -> Callable[[], Awaitable[tuple[User, User]]]:
    """Factory for a man and a woman looking for each other."""

    async def _make() -> tuple[User, User]:
        boy = await make_user(gender="male", looking_for="female")
        girl = await make_user(gender="female", looking_for="male")
        return boy, girl

    return _make


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}


@pytest.fixture
def headers() -> Callable[[User], dict[str, str]]:
    """Bearer headers for a user."""
    return auth_headers


def in_days(days: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=days)


@pytest.fixture
def future() -> Callable[[int], datetime]:
    return in_days

"""
Payment gateway client with provider abstraction.

The bundled provider talks to the Razorpay REST API over httpx. Amounts are
whole currency units in this service and subunits (x100) on the wire.
"""

from __future__ import annotations

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from corpdate.config import get_settings
from corpdate.errors import UpstreamError

logger = structlog.get_logger()

SUBUNITS_PER_UNIT = 100


@dataclass
class GatewayOrder:
    """Order handle returned to the client to open the checkout."""

    id: str
    amount: int
    currency: str
    receipt: str
    status: str = "created"


@dataclass
class GatewayPayment:
    id: str
    order_id: str
    status: str
    amount: int
    currency: str
    error_code: str | None = None
    error_description: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Hex HMAC-SHA256 over ``order_id|payment_id``."""
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    """Constant-time comparison of a gateway-supplied signature."""
    if not signature or not secret:
        return False
    expected = compute_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected, signature)


class PaymentGateway(ABC):
    """Abstract payment gateway."""

    @abstractmethod
    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> GatewayOrder:
        """Create an order for ``amount`` whole units. Raises UpstreamError."""
        ...

    @abstractmethod
    async def fetch_payment(self, payment_id: str) -> GatewayPayment:
        """Fetch a payment. Raises UpstreamError."""
        ...


class RazorpayGateway(PaymentGateway):
    """Razorpay Orders/Payments API via httpx with basic auth."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.key_id, self.key_secret),
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:  # noqa: ANN401
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "gateway_request_failed",
                path=path,
                status=exc.response.status_code,
                body=exc.response.text[:500],
            )
            msg = f"Payment gateway returned {exc.response.status_code}"
            raise UpstreamError(msg) from exc
        except httpx.HTTPError as exc:
            logger.warning("gateway_unreachable", path=path, error=str(exc))
            msg = "Payment gateway unavailable"
            raise UpstreamError(msg) from exc

    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> GatewayOrder:
        data = await self._request(
            "POST",
            "/orders",
            json={
                "amount": amount * SUBUNITS_PER_UNIT,
                "currency": currency,
                "receipt": receipt,
                "payment_capture": 1,
                "notes": notes or {},
            },
        )
        logger.info("gateway_order_created", order_id=data["id"], amount=amount, currency=currency)
        return GatewayOrder(
            id=data["id"],
            amount=data["amount"] // SUBUNITS_PER_UNIT,
            currency=data["currency"],
            receipt=data.get("receipt") or receipt,
            status=data.get("status", "created"),
        )

    async def fetch_payment(self, payment_id: str) -> GatewayPayment:
        data = await self._request("GET", f"/payments/{payment_id}")
        return GatewayPayment(
            id=data["id"],
            order_id=data.get("order_id") or "",
            status=data.get("status", ""),
            amount=int(data.get("amount", 0)) // SUBUNITS_PER_UNIT,
            currency=data.get("currency", ""),
            error_code=data.get("error_code"),
            error_description=data.get("error_description"),
            raw=data,
        )


def _create_gateway() -> PaymentGateway:
    """Create the gateway client from configuration."""
    settings = get_settings()
    return RazorpayGateway(
        key_id=settings.gateway_key_id,
        key_secret=settings.gateway_key_secret,
        base_url=settings.gateway_base_url,
        timeout=settings.gateway_timeout_seconds,
    )


_gateway: PaymentGateway | None = None


def get_payment_gateway() -> PaymentGateway:
    """Get the process-wide gateway client."""
    global _gateway  # noqa: PLW0603
    if _gateway is None:
        _gateway = _create_gateway()
    return _gateway


def reset_payment_gateway() -> None:
    """Drop the cached client (tests, settings reload)."""
    global _gateway  # noqa: PLW0603
    _gateway = None

"""Unit tests for the Razorpay gateway client."""

from __future__ import annotations

import base64
import json

import httpx
import pytest

from corpdate.errors import UpstreamError
from corpdate.payments.gateway import RazorpayGateway


def _gateway(handler) -> RazorpayGateway:  # noqa: ANN001
    return RazorpayGateway(
        key_id="rzp_test_key",
        key_secret="secret",
        base_url="https://api.razorpay.test/v1",
        transport=httpx.MockTransport(handler),
    )


class TestCreateOrder:
    @pytest.mark.asyncio
    async def test_amount_sent_in_subunits(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "id": "order_abc",
                "amount": seen["body"]["amount"],
                "currency": "INR",
                "receipt": seen["body"]["receipt"],
                "status": "created",
            })

        order = await _gateway(handler).create_order(650, "INR", "meeting_1_boy", notes={"purpose": "meeting"})

        assert seen["path"] == "/v1/orders"
        assert seen["auth"] == "Basic " + base64.b64encode(b"rzp_test_key:secret").decode()
        assert seen["body"]["amount"] == 65000
        assert seen["body"]["notes"] == {"purpose": "meeting"}
        assert order.id == "order_abc"
        assert order.amount == 650
        assert order.receipt == "meeting_1_boy"

    @pytest.mark.asyncio
    async def test_http_error_is_upstream_failure(self) -> None:
        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": {"description": "bad amount"}})

        with pytest.raises(UpstreamError, match="400"):
            await _gateway(handler).create_order(1, "INR", "r")

    @pytest.mark.asyncio
    async def test_network_error_is_upstream_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamError, match="unavailable"):
            await _gateway(handler).create_order(1, "INR", "r")


class TestFetchPayment:
    @pytest.mark.asyncio
    async def test_parses_payment(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/payments/pay_1"
            return httpx.Response(200, json={
                "id": "pay_1",
                "order_id": "order_1",
                "status": "captured",
                "amount": 35000,
                "currency": "INR",
            })

        payment = await _gateway(handler).fetch_payment("pay_1")
        assert payment.order_id == "order_1"
        assert payment.status == "captured"
        assert payment.amount == 350

    @pytest.mark.asyncio
    async def test_failed_payment_carries_error(self) -> None:
        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={
                "id": "pay_2",
                "order_id": "order_2",
                "status": "failed",
                "amount": 100,
                "currency": "INR",
                "error_code": "BAD_REQUEST_ERROR",
                "error_description": "Card declined",
            })

        payment = await _gateway(handler).fetch_payment("pay_2")
        assert payment.status == "failed"
        assert payment.error_description == "Card declined"

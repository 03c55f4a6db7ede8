"""Unit tests for the Twilio Verify provider."""

from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest

from corpdate.errors import UpstreamError
from corpdate.verification.providers import TwilioOTPProvider


def _provider(handler) -> TwilioOTPProvider:  # noqa: ANN001
    return TwilioOTPProvider("AC123", "token", "VA456", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_send_starts_sms_verification() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["form"] = parse_qs(request.content.decode())
        return httpx.Response(201, json={"sid": "VE789", "status": "pending"})

    result = await _provider(handler).send_otp("+919876543210")

    assert seen["path"] == "/v2/Services/VA456/Verifications"
    assert seen["form"] == {"To": ["+919876543210"], "Channel": ["sms"]}
    assert result.success
    assert result.verification_id == "VE789"


@pytest.mark.asyncio
async def test_check_approved() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v2/Services/VA456/VerificationCheck"
        return httpx.Response(200, json={"status": "approved"})

    assert await _provider(handler).verify_otp("VE789", "123456", "+919876543210") is True


@pytest.mark.asyncio
async def test_check_wrong_code() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "pending"})

    assert await _provider(handler).verify_otp("VE789", "000000", "+919876543210") is False


@pytest.mark.asyncio
async def test_expired_check_is_a_failed_verification() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "not found"})

    assert await _provider(handler).verify_otp("VE789", "123456", "+919876543210") is False


@pytest.mark.asyncio
async def test_send_failure_is_upstream_failure() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    with pytest.raises(UpstreamError):
        await _provider(handler).send_otp("+919876543210")

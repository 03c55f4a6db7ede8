"""
OTP delivery with provider abstraction.

Supports a console provider (development: the code is written to the log and
kept hashed in Redis) and Twilio Verify. Provider is selected via
configuration.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import secrets
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx
import structlog

from corpdate.config import get_settings
from corpdate.errors import UpstreamError
from corpdate.redis_client import get_redis

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = structlog.get_logger()


@dataclass
class OTPSendResult:
    success: bool
    verification_id: str


class BaseOTPProvider(ABC):
    """Abstract base class for OTP providers."""

    @abstractmethod
    async def send_otp(self, phone: str) -> OTPSendResult:
        """Send a code to ``phone``. Raises UpstreamError on delivery failure."""
        ...

    @abstractmethod
    async def verify_otp(self, verification_id: str, otp: str, phone: str) -> bool:
        """True iff ``otp`` is the live code issued under ``verification_id`` for ``phone``."""
        ...


class ConsoleOTPProvider(BaseOTPProvider):
    """Development provider: codes go to the log, state lives in Redis."""

    KEY_PREFIX = "otp:"

    def __init__(
        self,
        length: int = 6,
        ttl_seconds: int = 300,
        max_attempts: int = 5,
        redis: Redis | None = None,
    ) -> None:
        self.length = length
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts
        self._redis = redis

    def _store(self) -> Redis:
        if self._redis is not None:
            return self._redis
        try:
            return get_redis()
        except RuntimeError as exc:
            msg = "OTP store unavailable"
            raise UpstreamError(msg) from exc

    @staticmethod
    def _hash(code: str) -> str:
        return hashlib.sha256(code.encode()).hexdigest()

    async def send_otp(self, phone: str) -> OTPSendResult:
        code = "".join(secrets.choice("0123456789") for _ in range(self.length))
        verification_id = uuid.uuid4().hex
        state = {"phone": phone, "code_hash": self._hash(code), "attempts": 0}
        await self._store().set(self.KEY_PREFIX + verification_id, json.dumps(state), ex=self.ttl_seconds)
        logger.info("otp_issued", provider="console", phone=phone, verification_id=verification_id, code=code)
        return OTPSendResult(success=True, verification_id=verification_id)

    async def verify_otp(self, verification_id: str, otp: str, phone: str) -> bool:
        store = self._store()
        key = self.KEY_PREFIX + verification_id
        raw = await store.get(key)
        if raw is None:
            return False

        state = json.loads(raw)
        if state["phone"] != phone:
            return False

        if hmac.compare_digest(state["code_hash"], self._hash(otp)):
            await store.delete(key)
            return True

        state["attempts"] += 1
        if state["attempts"] >= self.max_attempts:
            await store.delete(key)
            logger.warning("otp_attempts_exhausted", verification_id=verification_id)
        else:
            await store.set(key, json.dumps(state), keepttl=True)
        return False


class TwilioOTPProvider(BaseOTPProvider):
    """Twilio Verify v2 over httpx."""

    BASE_URL = "https://verify.twilio.com/v2"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        service_sid: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.service_sid = service_sid
        self._transport = transport

    async def _post(self, path: str, data: dict[str, str]) -> dict:
        try:
            async with httpx.AsyncClient(
                base_url=self.BASE_URL,
                auth=(self.account_sid, self.auth_token),
                timeout=10.0,
                transport=self._transport,
            ) as client:
                response = await client.post(f"/Services/{self.service_sid}{path}", data=data)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("otp_provider_failed", provider="twilio", status=exc.response.status_code)
            # Twilio answers 404 for an expired or already-approved verification check
            if path == "/VerificationCheck" and exc.response.status_code == 404:
                return {"status": "expired"}
            msg = "OTP provider error"
            raise UpstreamError(msg) from exc
        except httpx.HTTPError as exc:
            logger.warning("otp_provider_unreachable", provider="twilio", error=str(exc))
            msg = "OTP provider unavailable"
            raise UpstreamError(msg) from exc

    async def send_otp(self, phone: str) -> OTPSendResult:
        data = await self._post("/Verifications", {"To": phone, "Channel": "sms"})
        logger.info("otp_issued", provider="twilio", phone=phone, verification_id=data.get("sid"))
        return OTPSendResult(success=data.get("status") == "pending", verification_id=data.get("sid", ""))

    async def verify_otp(self, verification_id: str, otp: str, phone: str) -> bool:
        data = await self._post("/VerificationCheck", {"To": phone, "Code": otp})
        return data.get("status") == "approved"


def _create_provider() -> BaseOTPProvider:
    """Create OTP provider based on configuration."""
    settings = get_settings()
    provider_name = settings.otp_provider.lower()

    if provider_name == "console":
        return ConsoleOTPProvider(
            length=settings.otp_length,
            ttl_seconds=settings.otp_ttl_seconds,
            max_attempts=settings.otp_max_attempts,
        )
    if provider_name == "twilio":
        return TwilioOTPProvider(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            service_sid=settings.twilio_verify_service_sid,
        )
    msg = f"Unsupported OTP provider: {provider_name}"
    raise ValueError(msg)


_provider: BaseOTPProvider | None = None


def get_otp_provider() -> BaseOTPProvider:
    """Get the process-wide OTP provider."""
    global _provider  # noqa: PLW0603
    if _provider is None:
        _provider = _create_provider()
    return _provider


def reset_otp_provider() -> None:
    global _provider  # noqa: PLW0603
    _provider = None

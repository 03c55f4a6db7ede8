"""Integration tests for phone verification."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from corpdate.errors import ConflictError, InvalidInputError
from corpdate.verification.service import send_otp, verification_status, verify_otp
from tests.conftest import TEST_OTP, FakeOTPProvider

PHONE = "+91 98765 43210"
NORMALIZED = "+919876543210"


class TestSend:
    @pytest.mark.asyncio
    async def test_anonymous(self, db: AsyncSession, otp_provider: FakeOTPProvider) -> None:
        result = await send_otp(db, otp_provider, PHONE)
        assert result["success"] is True
        assert otp_provider.sent[result["verification_id"]] == NORMALIZED

    @pytest.mark.asyncio
    async def test_invalid_number(self, db: AsyncSession, otp_provider: FakeOTPProvider) -> None:
        with pytest.raises(InvalidInputError):
            await send_otp(db, otp_provider, "12-ab")
        assert otp_provider.sent == {}

    @pytest.mark.asyncio
    async def test_number_owned_by_someone_else(
        self, db: AsyncSession, otp_provider: FakeOTPProvider, make_user,
    ) -> None:
        await make_user(phone_number=NORMALIZED)
        me = await make_user()
        with pytest.raises(ConflictError):
            await send_otp(db, otp_provider, PHONE, me)

    @pytest.mark.asyncio
    async def test_own_number_can_be_reverified(
        self, db: AsyncSession, otp_provider: FakeOTPProvider, make_user,
    ) -> None:
        me = await make_user(phone_number=NORMALIZED)
        assert (await send_otp(db, otp_provider, PHONE, me))["success"] is True


class TestVerify:
    @pytest.mark.asyncio
    async def test_anonymous_gets_phone_data(self, db: AsyncSession, otp_provider: FakeOTPProvider) -> None:
        sent = await send_otp(db, otp_provider, PHONE)
        result = await verify_otp(db, otp_provider, sent["verification_id"], TEST_OTP, PHONE)
        assert result == {"success": True, "phone_data": {"phone_number": NORMALIZED, "verified": True}}

    @pytest.mark.asyncio
    async def test_signed_in_links_phone(self, db: AsyncSession, otp_provider: FakeOTPProvider, make_user) -> None:
        me = await make_user()
        sent = await send_otp(db, otp_provider, PHONE, me)
        result = await verify_otp(db, otp_provider, sent["verification_id"], TEST_OTP, PHONE, me)
        await db.commit()

        assert result["user"]["phone_number"] == NORMALIZED
        await db.refresh(me)
        assert me.phone_number == NORMALIZED
        assert me.phone_verified is True
        status = verification_status(me)
        assert status["verified"] is True
        assert status["verified_at"] is not None

    @pytest.mark.asyncio
    async def test_wrong_code(self, db: AsyncSession, otp_provider: FakeOTPProvider, make_user) -> None:
        me = await make_user()
        sent = await send_otp(db, otp_provider, PHONE, me)
        with pytest.raises(InvalidInputError, match="Invalid or expired"):
            await verify_otp(db, otp_provider, sent["verification_id"], "000000", PHONE, me)
        assert me.phone_verified is False

    @pytest.mark.asyncio
    async def test_number_claimed_in_between(
        self, db: AsyncSession, otp_provider: FakeOTPProvider, make_user,
    ) -> None:
        me = await make_user()
        sent = await send_otp(db, otp_provider, PHONE, me)
        await make_user(phone_number=NORMALIZED)
        with pytest.raises(ConflictError):
            await verify_otp(db, otp_provider, sent["verification_id"], TEST_OTP, PHONE, me)


@pytest.mark.asyncio
async def test_status_for_unverified_user(make_user) -> None:
    me = await make_user()
    assert verification_status(me) == {
        "verified": False,
        "phone_number": None,
        "verified_at": None,
        "last_updated": None,
    }

"""Phone verification schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SendOTPRequest(BaseModel):
    phone_number: str = Field(..., min_length=2, max_length=32)


class SendOTPResponse(BaseModel):
    success: bool
    verification_id: str


class VerifyOTPRequest(BaseModel):
    verification_id: str = Field(..., min_length=1)
    otp: str = Field(..., min_length=4, max_length=10)
    phone_number: str = Field(..., min_length=2, max_length=32)


class LinkedPhoneUser(BaseModel):
    id: int
    email: str
    name: str | None = None
    phone_number: str
    phone_verified: bool


class PhoneData(BaseModel):
    phone_number: str
    verified: bool


class VerifyOTPResponse(BaseModel):
    success: bool
    user: LinkedPhoneUser | None = None
    phone_data: PhoneData | None = None


class VerificationStatusResponse(BaseModel):
    verified: bool
    phone_number: str | None = None
    verified_at: datetime | None = None
    last_updated: datetime | None = None

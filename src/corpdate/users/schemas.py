"""Request/response schemas for profile endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserCard(BaseModel):
    """Public card shown in candidate pools, matches and meetings.

    Contact fields (phone, LinkedIn) are deliberately absent; they are
    unlocked through premium purchases.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str | None = None
    image: str | None = None
    title: str | None = None
    company: str | None = None
    industry: str | None = None
    location: str | None = None
    bio: str | None = None
    gender: str | None = None
    age: int | None = None
    interests: list[str] | None = None
    is_verified: bool = False


class ProfileResponse(BaseModel):
    """Full profile of the authenticated user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None = None
    image: str | None = None
    phone_number: str | None = None
    phone_verified: bool = False
    linkedin_url: str | None = None
    twitter_url: str | None = None
    title: str | None = None
    company: str | None = None
    industry: str | None = None
    experience: int | None = None
    salary: str | None = None
    education: str | None = None
    location: str | None = None
    bio: str | None = None
    gender: str | None = None
    age: int | None = None
    looking_for: str | None = None
    age_range: str | None = None
    religion: str | None = None
    interests: list[str] | None = None
    lifestyle: str | None = None
    relationship_goals: str | None = None
    is_profile_complete: bool = False
    is_verified: bool = False
    is_premium: bool = False
    verification_level: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProfileUpdateRequest(BaseModel):
    """Profile form. Only fields present in the body are written."""

    name: str | None = Field(None, max_length=128)
    image: str | None = None
    linkedin_url: str | None = Field(None, max_length=512)
    twitter_url: str | None = Field(None, max_length=512)
    title: str | None = Field(None, max_length=128)
    company: str | None = Field(None, max_length=128)
    industry: str | None = Field(None, max_length=128)
    experience: int | None = Field(None, ge=0, le=80)
    salary: str | None = Field(None, max_length=64)
    education: str | None = Field(None, max_length=256)
    location: str | None = Field(None, max_length=128)
    bio: str | None = Field(None, max_length=2000)
    gender: str | None = Field(None, pattern="^(male|female|other)$")
    age: int | None = Field(None, ge=18, le=120)
    looking_for: str | None = Field(None, pattern="^(male|female|both)$")
    age_range: str | None = Field(None, max_length=16)
    religion: str | None = Field(None, max_length=64)
    interests: list[str] | str | None = None
    lifestyle: str | None = Field(None, max_length=128)
    relationship_goals: str | None = Field(None, max_length=128)

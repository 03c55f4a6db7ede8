"""ORM models.

Status columns are plain strings; the legal values live next to the code that
transitions them (see the ``*_STATUSES`` constants below).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from corpdate.db.base import Base, BigIntId, JSONType

MATCH_STATUSES = ("pending", "accepted")
MEETING_STATUSES = ("pending", "confirmed", "cancelled", "completed")
PAYMENT_STATUSES = ("pending", "completed")
CAB_STATUSES = ("pending", "confirmed", "cancelled")
ORDER_STATUSES = ("pending", "completed", "failed")
PREMIUM_TYPES = ("phone", "linkedin")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """A member. Never hard-deleted; deactivated via ``is_active``."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Contact (unlockable) ---
    phone_number: Mapped[str | None] = mapped_column(String(20), nullable=True, unique=True)
    phone_verified: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    phone_verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    linkedin_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    twitter_url: Mapped[str | None] = mapped_column(String(512), nullable=True)

    # --- Professional ---
    title: Mapped[str | None] = mapped_column(String(128), nullable=True)
    company: Mapped[str | None] = mapped_column(String(128), nullable=True)
    industry: Mapped[str | None] = mapped_column(String(128), nullable=True)
    experience: Mapped[int | None] = mapped_column(Integer, nullable=True)
    salary: Mapped[str | None] = mapped_column(String(64), nullable=True)
    education: Mapped[str | None] = mapped_column(String(256), nullable=True)

    # --- Personal ---
    location: Mapped[str | None] = mapped_column(String(128), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(16), nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    looking_for: Mapped[str | None] = mapped_column(String(16), nullable=True)
    age_range: Mapped[str | None] = mapped_column(String(16), nullable=True)
    religion: Mapped[str | None] = mapped_column(String(64), nullable=True)
    interests: Mapped[list[str] | None] = mapped_column(JSONType, nullable=True)
    lifestyle: Mapped[str | None] = mapped_column(String(128), nullable=True)
    relationship_goals: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # --- Flags ---
    is_profile_complete: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    is_premium: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    verification_level: Mapped[str | None] = mapped_column(String(32), nullable=True)

    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


class Match(Base):
    """Directed like ``user_id -> liked_user_id``. Mutual iff both directions exist."""

    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("user_id", "liked_user_id", name="uq_matches_user_liked"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    liked_user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    liked_user: Mapped[User] = relationship("User", foreign_keys=[liked_user_id])


class Pass(Base):
    """Directed pass ``user_id -> passed_user_id``; hides a candidate."""

    __tablename__ = "passes"
    __table_args__ = (
        UniqueConstraint("user_id", "passed_user_id", name="uq_passes_user_passed"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    passed_user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Message(Base):
    """Direct message between two mutually matched users."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    receiver_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    sender: Mapped[User] = relationship("User", foreign_keys=[sender_id])


# ---------------------------------------------------------------------------
# Meetings
# ---------------------------------------------------------------------------


class Restaurant(Base):
    """Venue a meeting can be arranged at."""

    __tablename__ = "restaurants"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    address: Mapped[str | None] = mapped_column(String(256), nullable=True)
    city: Mapped[str | None] = mapped_column(String(64), nullable=True)
    cuisine: Mapped[str | None] = mapped_column(String(64), nullable=True)
    price_range: Mapped[str | None] = mapped_column(String(16), nullable=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Meeting(Base):
    """Dinner proposal from ``boy_user_id`` to ``girl_user_id``."""

    __tablename__ = "meetings"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    boy_user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id"), nullable=False)
    girl_user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id"), nullable=False)
    restaurant_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("restaurants.id"), nullable=False)
    date_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    payment_tier: Mapped[str] = mapped_column(String(8), nullable=False)
    boy_payment: Mapped[int] = mapped_column(Integer, nullable=False)
    girl_payment: Mapped[int] = mapped_column(Integer, nullable=False)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    boy_payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    girl_payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    boy_user: Mapped[User] = relationship("User", foreign_keys=[boy_user_id])
    girl_user: Mapped[User] = relationship("User", foreign_keys=[girl_user_id])
    restaurant: Mapped[Restaurant] = relationship("Restaurant")
    cab_bookings: Mapped[list[CabBooking]] = relationship("CabBooking", back_populates="meeting")


class CabBooking(Base):
    """Ride to a meeting, arranged by ``user_id`` for ``passenger_id``."""

    __tablename__ = "cab_bookings"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    meeting_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id"), nullable=False)
    passenger_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id"), nullable=False)
    pickup_location: Mapped[str] = mapped_column(String(256), nullable=False)
    drop_location: Mapped[str] = mapped_column(String(256), nullable=False)
    pickup_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    estimated_fare: Mapped[int] = mapped_column(Integer, nullable=False)
    max_coverage: Mapped[int] = mapped_column(Integer, nullable=False)
    user_payment: Mapped[int] = mapped_column(Integer, nullable=False)
    passenger_payment: Mapped[int] = mapped_column(Integer, nullable=False)
    user_payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    passenger_payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    meeting: Mapped[Meeting] = relationship("Meeting", back_populates="cab_bookings")


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


class PaymentOrder(Base):
    """Gateway order for one party's share of a meeting or a cab booking."""

    __tablename__ = "payment_orders"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id"), nullable=False)
    purpose: Mapped[str] = mapped_column(String(16), nullable=False)  # meeting | cab
    meeting_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False)
    cab_booking_id: Mapped[int | None] = mapped_column(
        BigIntId, ForeignKey("cab_bookings.id", ondelete="CASCADE"), nullable=True
    )
    payer_role: Mapped[str] = mapped_column(String(16), nullable=False)  # boy | girl | user | passenger
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    gateway_order_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    gateway_payment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    error_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    error_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PremiumPurchase(Base):
    """One-off unlock of a target's contact attribute for a buyer."""

    __tablename__ = "premium_purchases"
    __table_args__ = (
        # at most one open or completed purchase per (buyer, target, type)
        Index(
            "uq_premium_purchases_open",
            "user_id",
            "target_user_id",
            "type",
            unique=True,
            postgresql_where=text("status IN ('pending', 'completed')"),
            sqlite_where=text("status IN ('pending', 'completed')"),
        ),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    target_user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)  # phone | linkedin
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    gateway_order_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    gateway_payment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    error_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    error_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class Notification(Base):
    """Persisted user notification; also pushed over pub/sub on creation."""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    related_user_id: Mapped[int | None] = mapped_column(
        BigIntId, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    meeting_id: Mapped[int | None] = mapped_column(
        BigIntId, ForeignKey("meetings.id", ondelete="SET NULL"), nullable=True
    )
    cab_booking_id: Mapped[int | None] = mapped_column(
        BigIntId, ForeignKey("cab_bookings.id", ondelete="SET NULL"), nullable=True
    )
    data: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

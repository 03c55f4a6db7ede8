"""Initial schema: users, matching, messaging, meetings, cabs, payments, notifications.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps(*names: str) -> list[sa.Column]:
    return [sa.Column(name, sa.DateTime(timezone=True), nullable=True) for name in names]


def _user_fk(name: str, nullable: bool = False, ondelete: str | None = "CASCADE") -> sa.Column:
    return sa.Column(name, sa.BigInteger(), sa.ForeignKey("users.id", ondelete=ondelete), nullable=nullable)


def upgrade() -> None:
    """Create all tables."""
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("name", sa.String(128), nullable=True),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("phone_number", sa.String(20), nullable=True, unique=True),
        sa.Column("phone_verified", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("phone_verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("linkedin_url", sa.String(512), nullable=True),
        sa.Column("twitter_url", sa.String(512), nullable=True),
        sa.Column("title", sa.String(128), nullable=True),
        sa.Column("company", sa.String(128), nullable=True),
        sa.Column("industry", sa.String(128), nullable=True),
        sa.Column("experience", sa.Integer(), nullable=True),
        sa.Column("salary", sa.String(64), nullable=True),
        sa.Column("education", sa.String(256), nullable=True),
        sa.Column("location", sa.String(128), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("gender", sa.String(16), nullable=True),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("looking_for", sa.String(16), nullable=True),
        sa.Column("age_range", sa.String(16), nullable=True),
        sa.Column("religion", sa.String(64), nullable=True),
        sa.Column("interests", postgresql.JSONB(), nullable=True),
        sa.Column("lifestyle", sa.String(128), nullable=True),
        sa.Column("relationship_goals", sa.String(128), nullable=True),
        sa.Column("is_profile_complete", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("is_verified", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("is_premium", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("verification_level", sa.String(32), nullable=True),
        *_timestamps("created_at", "updated_at"),
    )
    op.create_index(
        "ix_users_candidates",
        "users",
        ["created_at"],
        postgresql_where=sa.text("is_profile_complete AND is_active"),
    )

    # --- matches / passes ---
    op.create_table(
        "matches",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk("user_id"),
        _user_fk("liked_user_id"),
        sa.Column("status", sa.String(16), server_default="pending", nullable=False),
        *_timestamps("created_at", "updated_at"),
        sa.UniqueConstraint("user_id", "liked_user_id", name="uq_matches_user_liked"),
    )
    op.create_index("ix_matches_liked_user_id", "matches", ["liked_user_id"])
    op.execute(
        "ALTER TABLE matches ADD CONSTRAINT ck_matches_status "
        "CHECK (status IN ('pending', 'accepted'))"
    )

    op.create_table(
        "passes",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk("user_id"),
        _user_fk("passed_user_id"),
        *_timestamps("created_at"),
        sa.UniqueConstraint("user_id", "passed_user_id", name="uq_passes_user_passed"),
    )

    # --- messages ---
    op.create_table(
        "messages",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk("sender_id"),
        _user_fk("receiver_id"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), server_default="false", nullable=False),
        *_timestamps("created_at"),
    )
    op.create_index("ix_messages_pair", "messages", ["sender_id", "receiver_id", "created_at"])

    # --- restaurants ---
    op.create_table(
        "restaurants",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("address", sa.String(256), nullable=True),
        sa.Column("city", sa.String(64), nullable=True),
        sa.Column("cuisine", sa.String(64), nullable=True),
        sa.Column("price_range", sa.String(16), nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        *_timestamps("created_at"),
    )

    # --- meetings ---
    op.create_table(
        "meetings",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk("boy_user_id", ondelete=None),
        _user_fk("girl_user_id", ondelete=None),
        sa.Column("restaurant_id", sa.BigInteger(), sa.ForeignKey("restaurants.id"), nullable=False),
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("payment_tier", sa.String(8), nullable=False),
        sa.Column("boy_payment", sa.Integer(), nullable=False),
        sa.Column("girl_payment", sa.Integer(), nullable=False),
        sa.Column("total_amount", sa.Integer(), nullable=False),
        sa.Column("boy_payment_status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("girl_payment_status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("special_requests", sa.Text(), nullable=True),
        *_timestamps("created_at", "updated_at"),
    )
    op.create_index("ix_meetings_boy_user_id", "meetings", ["boy_user_id", "status"])
    op.create_index("ix_meetings_girl_user_id", "meetings", ["girl_user_id", "status"])
    op.execute(
        "ALTER TABLE meetings ADD CONSTRAINT ck_meetings_status "
        "CHECK (status IN ('pending', 'confirmed', 'cancelled', 'completed'))"
    )
    op.execute(
        "ALTER TABLE meetings ADD CONSTRAINT ck_meetings_tier "
        "CHECK (payment_tier IN ('500', '650', '1000'))"
    )

    # --- cab_bookings ---
    op.create_table(
        "cab_bookings",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("meeting_id", sa.BigInteger(), sa.ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False),
        _user_fk("user_id", ondelete=None),
        _user_fk("passenger_id", ondelete=None),
        sa.Column("pickup_location", sa.String(256), nullable=False),
        sa.Column("drop_location", sa.String(256), nullable=False),
        sa.Column("pickup_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("estimated_fare", sa.Integer(), nullable=False),
        sa.Column("max_coverage", sa.Integer(), nullable=False),
        sa.Column("user_payment", sa.Integer(), nullable=False),
        sa.Column("passenger_payment", sa.Integer(), nullable=False),
        sa.Column("user_payment_status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("passenger_payment_status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("status", sa.String(16), server_default="pending", nullable=False),
        *_timestamps("created_at"),
    )
    op.create_index("ix_cab_bookings_meeting_id", "cab_bookings", ["meeting_id"])
    op.execute(
        "ALTER TABLE cab_bookings ADD CONSTRAINT ck_cab_bookings_split "
        "CHECK (user_payment + passenger_payment = estimated_fare)"
    )

    # --- payment_orders ---
    op.create_table(
        "payment_orders",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk("user_id", ondelete=None),
        sa.Column("purpose", sa.String(16), nullable=False),
        sa.Column("meeting_id", sa.BigInteger(), sa.ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "cab_booking_id", sa.BigInteger(), sa.ForeignKey("cab_bookings.id", ondelete="CASCADE"), nullable=True
        ),
        sa.Column("payer_role", sa.String(16), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("gateway_order_id", sa.String(64), nullable=False, unique=True),
        sa.Column("gateway_payment_id", sa.String(64), nullable=True),
        sa.Column("status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("error_code", sa.String(64), nullable=True),
        sa.Column("error_description", sa.Text(), nullable=True),
        *_timestamps("created_at", "completed_at"),
    )
    op.execute(
        "ALTER TABLE payment_orders ADD CONSTRAINT ck_payment_orders_status "
        "CHECK (status IN ('pending', 'completed', 'failed'))"
    )

    # --- premium_purchases ---
    op.create_table(
        "premium_purchases",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk("user_id"),
        _user_fk("target_user_id"),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("gateway_order_id", sa.String(64), nullable=False, unique=True),
        sa.Column("gateway_payment_id", sa.String(64), nullable=True),
        sa.Column("error_code", sa.String(64), nullable=True),
        sa.Column("error_description", sa.Text(), nullable=True),
        *_timestamps("created_at", "completed_at"),
    )
    op.create_index("ix_premium_purchases_triple", "premium_purchases", ["user_id", "target_user_id", "type"])
    op.execute(
        "ALTER TABLE premium_purchases ADD CONSTRAINT ck_premium_purchases_type "
        "CHECK (type IN ('phone', 'linkedin'))"
    )

    # --- notifications ---
    op.create_table(
        "notifications",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        _user_fk("user_id"),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        _user_fk("related_user_id", nullable=True, ondelete="SET NULL"),
        sa.Column("meeting_id", sa.BigInteger(), sa.ForeignKey("meetings.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "cab_booking_id", sa.BigInteger(), sa.ForeignKey("cab_bookings.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("data", postgresql.JSONB(), server_default="{}", nullable=False),
        sa.Column("is_read", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps("created_at"),
    )
    op.create_index("ix_notifications_user_unread", "notifications", ["user_id", "is_read", "created_at"])


def downgrade() -> None:
    """Drop all tables."""
    for table in (
        "notifications",
        "premium_purchases",
        "payment_orders",
        "cab_bookings",
        "meetings",
        "restaurants",
        "messages",
        "passes",
        "matches",
        "users",
    ):
        op.drop_table(table)

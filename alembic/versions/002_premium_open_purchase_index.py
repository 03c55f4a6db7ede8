"""Unique open purchase per (buyer, target, type).

Revision ID: 002_premium_open_purchase_index
Revises: 001_initial_schema
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "002_premium_open_purchase_index"
down_revision: str | None = "001_initial_schema"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Allow one pending or completed purchase per triple; failed ones may repeat."""
    op.create_index(
        "uq_premium_purchases_open",
        "premium_purchases",
        ["user_id", "target_user_id", "type"],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'completed')"),
    )


def downgrade() -> None:
    op.drop_index("uq_premium_purchases_open", table_name="premium_purchases")

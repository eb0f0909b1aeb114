"""coupon and purchase tables

Kupon tablosu ve kullanıcı başı limit için okunan satın alma tablosu.

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


revision: str = "0001_coupon_and_purchase"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "coupon",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("discount_type", sa.String(length=16), nullable=False),
        sa.Column("discount_value", sa.Float(), nullable=False),
        sa.Column("min_purchase_amount", sa.Float(), nullable=True),
        sa.Column("max_discount_amount", sa.Float(), nullable=True),
        sa.Column("valid_from", sa.DateTime(), nullable=False),
        sa.Column("valid_until", sa.DateTime(), nullable=False),
        sa.Column("usage_limit", sa.Integer(), nullable=True),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("user_limit", sa.Integer(), nullable=True),
        sa.Column("applicable_kind", sa.String(length=16), nullable=False, server_default="all"),
        sa.Column("applicable_category", sa.String(length=16), nullable=True),
        sa.Column("applicable_items", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_coupon_code", "coupon", ["code"], unique=True)
    op.create_index("ix_coupon_is_active", "coupon", ["is_active"])
    op.create_index("ix_coupon_valid_from", "coupon", ["valid_from"])
    op.create_index("ix_coupon_valid_until", "coupon", ["valid_until"])

    op.create_table(
        "purchase",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("purchase_type", sa.String(length=16), nullable=False),
        sa.Column("item_id", sa.String(length=64), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("original_amount", sa.Float(), nullable=False),
        sa.Column("discount_amount", sa.Float(), nullable=True),
        sa.Column("currency", sa.String(length=8), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("coupon_code_used", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_purchase_user_id", "purchase", ["user_id"])
    op.create_index("ix_purchase_status", "purchase", ["status"])
    op.create_index("ix_purchase_coupon_code_used", "purchase", ["coupon_code_used"])


def downgrade() -> None:
    op.drop_table("purchase")
    op.drop_table("coupon")

"""cantina schema

Revision ID: 3c1f9a7d2b40
Revises:
Create Date: 2026-10-18 14:02:11.418305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f9a7d2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


MONEY = sa.Numeric(10, 2)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "table_type",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("slug", sa.String(120), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("short_description", sa.String(255), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("section", sa.String(120)),
        sa.Column("base_minimum_spend", MONEY, nullable=False),
        sa.Column("amenities", sa.JSON(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "table_inventory",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("table_type_id", sa.String(36), sa.ForeignKey("table_type.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("total_count", sa.Integer(), nullable=False),
        sa.Column("available", sa.Integer(), nullable=False),
        sa.Column("blocked", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("table_type_id", "date", name="uq_inventory_table_date"),
        sa.CheckConstraint("available >= 0", name="ck_inventory_available_non_negative"),
        sa.CheckConstraint("available <= total_count", name="ck_inventory_available_le_total"),
    )

    op.create_table(
        "bottle",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("sku", sa.String(64), unique=True),
        sa.Column("name", sa.String(160), nullable=False),
        sa.Column("brand", sa.String(120), nullable=False),
        sa.Column("category", sa.String(60), nullable=False),
        sa.Column("size", sa.String(40), nullable=False),
        sa.Column("price", MONEY, nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("image", sa.String(500), nullable=False),
        sa.Column("in_stock", sa.Boolean(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("on_hand", sa.Integer(), nullable=False),
        sa.Column("par", sa.Integer(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "pricing_rule",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("table_type_id", sa.String(36), sa.ForeignKey("table_type.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day_type", sa.String(20), nullable=False),
        sa.Column("minimum_spend", MONEY, nullable=False),
        sa.Column("deposit_rate", sa.Numeric(4, 2), nullable=False),
        sa.Column("event_name", sa.String(160)),
        sa.Column("start_date", sa.Date()),
        sa.Column("end_date", sa.Date()),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_pricing_rule_lookup", "pricing_rule", ["table_type_id", "active", "priority"])

    op.create_table(
        "reservation",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("confirmation_code", sa.String(16), nullable=False, unique=True),
        sa.Column("table_type_id", sa.String(36), sa.ForeignKey("table_type.id"), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("customer_name", sa.String(200), nullable=False),
        sa.Column("customer_email", sa.String(254), nullable=False),
        sa.Column("customer_phone", sa.String(32), nullable=False),
        sa.Column("party_size", sa.Integer(), nullable=False),
        sa.Column("occasion", sa.String(120)),
        sa.Column("special_requests", sa.Text()),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("minimum_spend", MONEY, nullable=False),
        sa.Column("bottle_subtotal", MONEY, nullable=False),
        sa.Column("deposit_amount", MONEY, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_reservation_date", "reservation", ["date"])
    op.create_index("ix_reservation_customer_email", "reservation", ["customer_email"])

    op.create_table(
        "reservation_bottle",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "reservation_id", sa.String(36), sa.ForeignKey("reservation.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("bottle_id", sa.String(36), sa.ForeignKey("bottle.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_per_unit", MONEY, nullable=False),
        sa.Column("total_price", MONEY, nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_reservation_bottle_quantity_positive"),
    )

    op.create_table(
        "notification",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "reservation_id", sa.String(36), sa.ForeignKey("reservation.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("recipient", sa.String(254), nullable=False),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "setting",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("key", sa.String(120), nullable=False, unique=True),
        sa.Column("value", sa.JSON(), nullable=False),
        sa.Column("description", sa.String(255)),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("setting")
    op.drop_table("notification")
    op.drop_table("reservation_bottle")
    op.drop_index("ix_reservation_customer_email", table_name="reservation")
    op.drop_index("ix_reservation_date", table_name="reservation")
    op.drop_table("reservation")
    op.drop_index("ix_pricing_rule_lookup", table_name="pricing_rule")
    op.drop_table("pricing_rule")
    op.drop_table("bottle")
    op.drop_table("table_inventory")
    op.drop_table("table_type")

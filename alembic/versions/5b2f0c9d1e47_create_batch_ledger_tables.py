"""create_batch_ledger_tables

Revision ID: 5b2f0c9d1e47
Revises:
Create Date: 2026-10-19 09:12:41.518302
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b2f0c9d1e47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # PRODUCTS
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sku", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cost_per_item", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        sa.Column("batch_tracked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("available_qty", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("stock_value", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("sales_qty", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "status IN ('active', 'low_stock', 'out_of_stock', 'inactive', 'discontinued')",
            name="ck_product_status_valid",
        ),
        sa.CheckConstraint("available_qty >= 0", name="ck_product_available_non_negative"),
        sa.CheckConstraint("sales_qty >= 0", name="ck_product_sales_non_negative"),
    )
    op.create_index("ix_products_id", "products", ["id"], unique=False)
    op.create_index("ix_products_sku", "products", ["sku"], unique=True)

    # PRODUCT BATCHES
    op.create_table(
        "product_batches",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "product_id",
            sa.Integer(),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("purchase_date", sa.Date(), nullable=False),
        sa.Column("quantity_purchased", sa.Integer(), nullable=False),
        sa.Column("quantity_available", sa.Integer(), nullable=False),
        sa.Column("cost_per_item", sa.Numeric(10, 2), nullable=False),
        sa.Column("batch_reference", sa.String(length=100), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.CheckConstraint("quantity_purchased >= 0", name="ck_batch_purchased_non_negative"),
        sa.CheckConstraint("quantity_available >= 0", name="ck_batch_available_non_negative"),
        sa.CheckConstraint(
            "quantity_available <= quantity_purchased",
            name="ck_batch_available_le_purchased",
        ),
        sa.CheckConstraint("cost_per_item >= 0", name="ck_batch_cost_non_negative"),
    )
    op.create_index("ix_product_batches_id", "product_batches", ["id"], unique=False)
    op.create_index("ix_product_batches_product_id", "product_batches", ["product_id"], unique=False)
    op.create_index(
        "ix_product_batches_fifo",
        "product_batches",
        ["product_id", "purchase_date", "id"],
        unique=False,
    )

    # BATCH CONSUMPTIONS
    op.create_table(
        "batch_consumptions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.String(length=100), nullable=False),
        sa.Column(
            "product_id",
            sa.Integer(),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "batch_id",
            sa.Integer(),
            sa.ForeignKey("product_batches.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("quantity_consumed", sa.Integer(), nullable=False),
        sa.Column("unit_cost", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint("quantity_consumed > 0", name="ck_consumption_quantity_positive"),
    )
    op.create_index("ix_batch_consumptions_id", "batch_consumptions", ["id"], unique=False)
    op.create_index("ix_batch_consumptions_order_id", "batch_consumptions", ["order_id"], unique=False)
    op.create_index("ix_batch_consumptions_product_id", "batch_consumptions", ["product_id"], unique=False)
    op.create_index("ix_batch_consumptions_batch_id", "batch_consumptions", ["batch_id"], unique=False)
    op.create_index(
        "ix_batch_consumptions_order_product",
        "batch_consumptions",
        ["order_id", "product_id"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_table("batch_consumptions")
    op.drop_table("product_batches")
    op.drop_table("products")

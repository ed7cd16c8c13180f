# fifo_inventory/models/products.py

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fifo_inventory.database import Base


STATUS_ACTIVE = "active"
STATUS_LOW_STOCK = "low_stock"
STATUS_OUT_OF_STOCK = "out_of_stock"
STATUS_INACTIVE = "inactive"
STATUS_DISCONTINUED = "discontinued"

# Set by an operator; never replaced by the valuation rollup
MANUAL_STATUSES = (STATUS_INACTIVE, STATUS_DISCONTINUED)

AUTOMATIC_STATUSES = (STATUS_ACTIVE, STATUS_LOW_STOCK, STATUS_OUT_OF_STOCK)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(50), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)

    # Legacy flat fields, only read when bootstrapping the first batch
    quantity = Column(Integer, nullable=False, default=0)
    cost_per_item = Column(Numeric(10, 2), nullable=False, default=0)
    purchase_date = Column(Date, nullable=True)

    # True once the product has had batches; the legacy fields are never replayed after that
    batch_tracked = Column(Boolean, default=False, nullable=False)

    # Derived from batches by the valuation rollup
    available_qty = Column(Integer, nullable=False, default=0)
    stock_value = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default=STATUS_ACTIVE)

    sales_qty = Column(Integer, nullable=False, default=0)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    version = Column(Integer, nullable=False)

    batches = relationship(
        "ProductBatch",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'low_stock', 'out_of_stock', 'inactive', 'discontinued')",
            name="ck_product_status_valid",
        ),
        CheckConstraint("available_qty >= 0", name="ck_product_available_non_negative"),
        CheckConstraint("sales_qty >= 0", name="ck_product_sales_non_negative"),
    )

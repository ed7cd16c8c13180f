# fifo_inventory/models/consumptions.py

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fifo_inventory.database import Base


class BatchConsumption(Base):
    """One row per batch touched by an order line, with the cost basis used."""

    __tablename__ = "batch_consumptions"

    id = Column(Integer, primary_key=True, index=True)

    order_id = Column(String(100), nullable=False, index=True)

    product_id = Column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    batch_id = Column(
        Integer,
        ForeignKey("product_batches.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    quantity_consumed = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(10, 2), nullable=False)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    batch = relationship("ProductBatch")

    __table_args__ = (
        Index("ix_batch_consumptions_order_product", "order_id", "product_id"),
        CheckConstraint("quantity_consumed > 0", name="ck_consumption_quantity_positive"),
    )

    @property
    def line_cost(self):
        return self.quantity_consumed * self.unit_cost

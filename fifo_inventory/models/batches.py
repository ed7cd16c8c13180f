# fifo_inventory/models/batches.py

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fifo_inventory.database import Base


STATE_UNCONSUMED = "unconsumed"
STATE_PARTIALLY_CONSUMED = "partially_consumed"
STATE_FULLY_CONSUMED = "fully_consumed"


class ProductBatch(Base):
    __tablename__ = "product_batches"

    id = Column(Integer, primary_key=True, index=True)

    product_id = Column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    purchase_date = Column(Date, nullable=False)
    quantity_purchased = Column(Integer, nullable=False)
    quantity_available = Column(Integer, nullable=False)
    cost_per_item = Column(Numeric(10, 2), nullable=False)
    batch_reference = Column(String(100), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    version = Column(Integer, nullable=False)

    product = relationship("Product", back_populates="batches")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_product_batches_fifo", "product_id", "purchase_date", "id"),
        CheckConstraint("quantity_purchased >= 0", name="ck_batch_purchased_non_negative"),
        CheckConstraint("quantity_available >= 0", name="ck_batch_available_non_negative"),
        CheckConstraint(
            "quantity_available <= quantity_purchased",
            name="ck_batch_available_le_purchased",
        ),
        CheckConstraint("cost_per_item >= 0", name="ck_batch_cost_non_negative"),
    )

    @property
    def quantity_consumed(self) -> int:
        return self.quantity_purchased - self.quantity_available

    @property
    def value(self):
        return self.quantity_available * self.cost_per_item

    @property
    def state(self) -> str:
        if self.quantity_available == self.quantity_purchased:
            return STATE_UNCONSUMED
        if self.quantity_available == 0:
            return STATE_FULLY_CONSUMED
        return STATE_PARTIALLY_CONSUMED

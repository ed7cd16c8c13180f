# fifo_inventory/core/fifo.py
#
# FIFO selection. Oldest purchase_date first; batches bought on
# the same date are drawn in the order they were recorded.

from sqlalchemy.orm import Session

from fifo_inventory.core import batch_store
from fifo_inventory.models.batches import ProductBatch


def fifo_key(batch: ProductBatch):
    return (batch.purchase_date, batch.id)


def fifo_order(batches: list[ProductBatch]) -> list[ProductBatch]:
    return sorted(batches, key=fifo_key)


def select_next(batches: list[ProductBatch]) -> ProductBatch | None:
    candidates = [batch for batch in batches if batch.quantity_available > 0]

    if not candidates:
        return None

    return min(candidates, key=fifo_key)


def fifo_batches(db: Session, product_id: int) -> list[ProductBatch]:
    return fifo_order(batch_store.list_batches(db, product_id))


def next_batch(db: Session, product_id: int) -> ProductBatch | None:
    """Batch the next sale of this product will draw from, or None when out of stock."""
    batch_store.get_product(db, product_id)

    return select_next(batch_store.list_batches(db, product_id))

# =========================================================
# BATCH STORE
# Reads and writes of product batches and the consumption
# ledger. No business rules live here; callers hold the
# product's exclusive section when they write.
# =========================================================

from sqlalchemy import func
from sqlalchemy.orm import Session

from fifo_inventory.core.errors import NotFoundError
from fifo_inventory.models.batches import ProductBatch
from fifo_inventory.models.consumptions import BatchConsumption
from fifo_inventory.models.products import Product


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()

    if product is None:
        raise NotFoundError(f"Product {product_id} not found")

    return product


def get_product_by_sku(db: Session, sku: str) -> Product | None:
    return db.query(Product).filter(Product.sku == sku).first()


def get_batch(db: Session, batch_id: int) -> ProductBatch:
    batch = db.query(ProductBatch).filter(ProductBatch.id == batch_id).first()

    if batch is None:
        raise NotFoundError(f"Batch {batch_id} not found")

    return batch


def list_batches(db: Session, product_id: int) -> list[ProductBatch]:
    """All batches of a product, oldest purchase first."""
    return (
        db.query(ProductBatch)
        .filter(ProductBatch.product_id == product_id)
        .order_by(ProductBatch.purchase_date.asc(), ProductBatch.id.asc())
        .all()
    )


def count_batches(db: Session, product_id: int) -> int:
    return (
        db.query(func.count(ProductBatch.id))
        .filter(ProductBatch.product_id == product_id)
        .scalar()
    )


def insert_batch(db: Session, batch: ProductBatch) -> ProductBatch:
    db.add(batch)
    db.flush()
    return batch


def remove_batch(db: Session, batch: ProductBatch):
    db.delete(batch)
    db.flush()


def order_consumptions(
    db: Session,
    order_id: str,
    product_id: int | None = None,
) -> list[BatchConsumption]:
    query = db.query(BatchConsumption).filter(BatchConsumption.order_id == order_id)

    if product_id is not None:
        query = query.filter(BatchConsumption.product_id == product_id)

    return query.order_by(BatchConsumption.id.asc()).all()


def batch_consumed_quantity(db: Session, batch_id: int) -> int:
    """Units the consumption ledger still attributes to a batch."""
    return (
        db.query(func.coalesce(func.sum(BatchConsumption.quantity_consumed), 0))
        .filter(BatchConsumption.batch_id == batch_id)
        .scalar()
    )


def record_consumption(
    db: Session,
    order_id: str,
    batch: ProductBatch,
    quantity: int,
) -> BatchConsumption:
    row = BatchConsumption(
        order_id=order_id,
        product_id=batch.product_id,
        batch_id=batch.id,
        quantity_consumed=quantity,
        unit_cost=batch.cost_per_item,
    )
    db.add(row)
    return row

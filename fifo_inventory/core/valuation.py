# =========================================================
# VALUATION ROLLUP
#
# The only writer of Product.available_qty, stock_value and
# status. Runs at the end of every batch mutation, inside the
# same product transaction, so the summary never lags the
# batches it is computed from.
# =========================================================

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from fifo_inventory.core import batch_store
from fifo_inventory.core.errors import ValidationError
from fifo_inventory.core.locks import product_transaction, retry_on_conflict
from fifo_inventory.models.batches import ProductBatch
from fifo_inventory.models.products import (
    AUTOMATIC_STATUSES,
    MANUAL_STATUSES,
    STATUS_ACTIVE,
    STATUS_LOW_STOCK,
    STATUS_OUT_OF_STOCK,
    Product,
)

logger = logging.getLogger("fifo_inventory")

# Below this many units a product is flagged low_stock; exactly this many is active
LOW_STOCK_THRESHOLD = 5

CENTS = Decimal("0.01")


def derive_status(available_qty: int, current_status: str | None = None) -> str:
    if current_status in MANUAL_STATUSES:
        return current_status

    if available_qty <= 0:
        return STATUS_OUT_OF_STOCK

    if available_qty < LOW_STOCK_THRESHOLD:
        return STATUS_LOW_STOCK

    return STATUS_ACTIVE


def summarize(batches: list[ProductBatch]):
    available_qty = sum(batch.quantity_available for batch in batches)

    stock_value = sum(
        (Decimal(batch.quantity_available) * Decimal(batch.cost_per_item) for batch in batches),
        Decimal("0.00"),
    )

    return available_qty, stock_value.quantize(CENTS)


def recompute(db: Session, product: Product) -> Product:
    """Rewrite the product's derived fields from its batches.

    Caller must hold the product's exclusive section.
    """
    db.flush()

    available_qty, stock_value = summarize(batch_store.list_batches(db, product.id))

    product.available_qty = available_qty
    product.stock_value = stock_value
    product.status = derive_status(available_qty, product.status)

    db.flush()

    return product


@retry_on_conflict
def recompute_product(db: Session, product_id: int) -> Product:
    with product_transaction(db, product_id) as product:
        recompute(db, product)

    return product


@retry_on_conflict
def set_status(db: Session, product_id: int, status: str) -> Product:
    """Apply a manual status, or hand status back to the rollup.

    Setting any automatic status clears the override; the stored
    value is then whatever the batches imply.
    """
    if status not in MANUAL_STATUSES + AUTOMATIC_STATUSES:
        raise ValidationError(f"Unknown product status '{status}'")

    with product_transaction(db, product_id) as product:
        previous = product.status

        product.status = status if status in MANUAL_STATUSES else STATUS_ACTIVE
        recompute(db, product)

    logger.info(f"Product {product_id} status {previous} -> {product.status}")

    return product

# fifo_inventory/core/bootstrap.py
#
# Products created before batch tracking only carry flat
# quantity / cost fields. The first time such a product is read
# it gets one "Initial Batch" built from those fields. That
# happens once per product: a product whose batches were all
# deleted later gets an empty initial batch instead.

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from fifo_inventory.core import batch_store
from fifo_inventory.core.locks import product_transaction, retry_on_conflict
from fifo_inventory.core.valuation import recompute
from fifo_inventory.models.batches import ProductBatch

logger = logging.getLogger("fifo_inventory")

INITIAL_BATCH_REFERENCE = "Initial Batch"


@retry_on_conflict
def ensure_batches(db: Session, product_id: int) -> list[ProductBatch]:
    """Return the product's batches, creating the initial one if it has none."""
    # Cheap path for the common case; the locked check below is authoritative
    if batch_store.count_batches(db, product_id) > 0:
        return batch_store.list_batches(db, product_id)

    with product_transaction(db, product_id) as product:
        if batch_store.count_batches(db, product_id) == 0:
            if product.batch_tracked:
                # Its stock already lives in batches that were deleted since
                purchased = available = 0
            else:
                purchased = max(product.quantity or 0, 0)
                available = max(product.available_qty or 0, 0)

            if available > purchased:
                logger.warning(
                    f"Product {product_id} legacy available_qty {available} exceeds "
                    f"quantity {purchased}; initial batch purchased set to {available}"
                )
                purchased = available

            batch = ProductBatch(
                product_id=product.id,
                purchase_date=product.purchase_date or datetime.now(timezone.utc).date(),
                quantity_purchased=purchased,
                quantity_available=available,
                cost_per_item=product.cost_per_item or Decimal("0.00"),
                batch_reference=INITIAL_BATCH_REFERENCE,
            )
            batch_store.insert_batch(db, batch)
            product.batch_tracked = True
            recompute(db, product)

            logger.info(
                f"Bootstrapped initial batch {batch.id} for product {product_id}: "
                f"{available}/{purchased} @ {batch.cost_per_item}"
            )

        batches = batch_store.list_batches(db, product_id)

    return batches

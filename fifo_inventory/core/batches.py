# =========================================================
# BATCH LIFECYCLE
#
# add / update / delete of individual purchase batches.
# All checks run inside the product's exclusive section, on
# the state that is about to be written.
#
# unconsumed -> partially_consumed -> fully_consumed
# Only an unconsumed batch can be deleted.
# =========================================================

import logging
from datetime import date
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from fifo_inventory.core import batch_store
from fifo_inventory.core.errors import BatchInUseError, ValidationError
from fifo_inventory.core.locks import product_transaction, retry_on_conflict
from fifo_inventory.core.valuation import CENTS, recompute
from fifo_inventory.models.batches import ProductBatch

logger = logging.getLogger("fifo_inventory")

EDITABLE_FIELDS = (
    "purchase_date",
    "quantity_purchased",
    "quantity_available",
    "cost_per_item",
    "batch_reference",
)


def _to_cost(value) -> Decimal:
    try:
        cost = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid cost per item: {value!r}") from exc

    if not cost.is_finite():
        raise ValidationError(f"Invalid cost per item: {value!r}")

    # Stored as Numeric(10, 2); anything finer would not survive the write
    if cost != cost.quantize(CENTS):
        raise ValidationError(f"Cost per item cannot have more than 2 decimal places: {value!r}")

    return cost


def _to_quantity(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be a whole number of units")
    return value


def validate_batch_values(quantity_purchased, quantity_available, cost_per_item):
    quantity_purchased = _to_quantity("quantity_purchased", quantity_purchased)
    quantity_available = _to_quantity("quantity_available", quantity_available)
    cost_per_item = _to_cost(cost_per_item)

    if quantity_purchased < 0 or quantity_available < 0:
        raise ValidationError("Quantities cannot be negative")

    if cost_per_item < 0:
        raise ValidationError("Cost per item cannot be negative")

    if quantity_available > quantity_purchased:
        raise ValidationError("Available quantity cannot exceed purchased quantity")

    return quantity_purchased, quantity_available, cost_per_item


def new_batch(
    product_id: int,
    purchase_date: date,
    quantity_purchased: int,
    quantity_available: int | None,
    cost_per_item,
    batch_reference: str | None = None,
) -> ProductBatch:
    if purchase_date is None:
        raise ValidationError("Purchase date is required")

    # A fresh purchase starts fully available
    if quantity_available is None:
        quantity_available = quantity_purchased

    quantity_purchased, quantity_available, cost_per_item = validate_batch_values(
        quantity_purchased, quantity_available, cost_per_item
    )

    return ProductBatch(
        product_id=product_id,
        purchase_date=purchase_date,
        quantity_purchased=quantity_purchased,
        quantity_available=quantity_available,
        cost_per_item=cost_per_item,
        batch_reference=batch_reference,
    )


@retry_on_conflict
def add_batch(
    db: Session,
    product_id: int,
    purchase_date: date,
    quantity_purchased: int,
    quantity_available: int | None = None,
    cost_per_item=Decimal("0.00"),
    batch_reference: str | None = None,
) -> ProductBatch:
    batch = new_batch(
        product_id,
        purchase_date,
        quantity_purchased,
        quantity_available,
        cost_per_item,
        batch_reference,
    )

    with product_transaction(db, product_id) as product:
        batch_store.insert_batch(db, batch)
        product.batch_tracked = True
        recompute(db, product)

    logger.info(
        f"Batch {batch.id} added to product {product_id}: "
        f"{batch.quantity_available}/{batch.quantity_purchased} @ {batch.cost_per_item}"
    )

    return batch


@retry_on_conflict
def update_batch(db: Session, batch_id: int, **fields) -> ProductBatch:
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")

    product_id = batch_store.get_batch(db, batch_id).product_id

    with product_transaction(db, product_id) as product:
        batch = batch_store.get_batch(db, batch_id)

        consumed = batch.quantity_consumed

        quantity_purchased = fields.get("quantity_purchased", batch.quantity_purchased)
        quantity_available = fields.get("quantity_available", batch.quantity_available)
        cost_per_item = fields.get("cost_per_item", batch.cost_per_item)

        quantity_purchased, quantity_available, cost_per_item = validate_batch_values(
            quantity_purchased, quantity_available, cost_per_item
        )

        # Consumed history cannot be erased by shrinking the purchase
        if quantity_purchased < consumed:
            raise ValidationError(
                f"Purchased quantity cannot be set below the {consumed} unit(s) already consumed"
            )

        if "purchase_date" in fields:
            if fields["purchase_date"] is None:
                raise ValidationError("Purchase date is required")
            batch.purchase_date = fields["purchase_date"]

        if "batch_reference" in fields:
            batch.batch_reference = fields["batch_reference"]

        batch.quantity_purchased = quantity_purchased
        batch.quantity_available = quantity_available
        batch.cost_per_item = cost_per_item

        recompute(db, product)

    logger.info(f"Batch {batch_id} of product {product_id} updated: {sorted(fields)}")

    return batch


@retry_on_conflict
def delete_batch(db: Session, batch_id: int) -> int:
    """Remove an unconsumed batch. Returns the owning product id."""
    product_id = batch_store.get_batch(db, batch_id).product_id

    with product_transaction(db, product_id) as product:
        batch = batch_store.get_batch(db, batch_id)

        # An order's ledger rows keep pointing at the batch even if an
        # edit has since put its stock back
        recorded = batch_store.batch_consumed_quantity(db, batch.id)

        if batch.quantity_available < batch.quantity_purchased or recorded > 0:
            raise BatchInUseError(batch.id, max(batch.quantity_consumed, recorded))

        batch_store.remove_batch(db, batch)
        recompute(db, product)

    logger.info(f"Batch {batch_id} deleted from product {product_id}")

    return product_id

# =========================================================
# FIFO CONSUMPTION
#
# Deducts a sold quantity from a product's batches, oldest
# first. All-or-nothing: if the product cannot cover the full
# quantity nothing is touched and InsufficientStockError is
# raised. The engine never clamps to what is available.
#
# Idempotency comes from the caller's order_id: every batch
# touched is written to the consumption ledger under it, and a
# repeated order_id for the same product returns the recorded
# result instead of deducting twice.
# =========================================================

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.orm import Session

from fifo_inventory.core import batch_store
from fifo_inventory.core.errors import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from fifo_inventory.core.fifo import fifo_order
from fifo_inventory.core.locks import product_transaction, retry_on_conflict
from fifo_inventory.core.valuation import recompute
from fifo_inventory.models.consumptions import BatchConsumption
from fifo_inventory.models.products import Product

logger = logging.getLogger("fifo_inventory")


@dataclass
class ConsumptionResult:
    product: Product
    quantity: int
    depleted: list[tuple[int, int]] = field(default_factory=list)
    cost_of_goods: Decimal = Decimal("0.00")
    remaining_shortfall: int = 0
    already_applied: bool = False


def plan_consumption(batches, quantity: int) -> list[tuple[object, int]]:
    """Pair each FIFO batch with the amount to take from it."""
    plan = []
    remaining = quantity

    for batch in fifo_order(batches):
        if remaining <= 0:
            break

        if batch.quantity_available <= 0:
            continue

        take = min(batch.quantity_available, remaining)
        plan.append((batch, take))
        remaining -= take

    return plan


def _replayed(product: Product, rows: list[BatchConsumption]) -> ConsumptionResult:
    cost_of_goods = sum((row.line_cost for row in rows), Decimal("0.00"))

    return ConsumptionResult(
        product=product,
        quantity=sum(row.quantity_consumed for row in rows),
        depleted=[(row.batch_id, row.quantity_consumed) for row in rows],
        cost_of_goods=cost_of_goods,
        already_applied=True,
    )


@retry_on_conflict
def consume(
    db: Session,
    product_id: int,
    quantity: int,
    order_id: str | None = None,
) -> ConsumptionResult:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("Quantity to consume must be a positive whole number")

    with product_transaction(db, product_id) as product:
        if order_id is not None:
            previous = batch_store.order_consumptions(db, order_id, product_id)
            if previous:
                logger.info(f"Order {order_id} already consumed product {product_id}, skipping")
                return _replayed(product, previous)

        batches = batch_store.list_batches(db, product_id)
        total_available = sum(batch.quantity_available for batch in batches)

        if total_available < quantity:
            logger.warning(
                f"Insufficient stock for product {product_id}: "
                f"requested {quantity}, available {total_available}"
            )
            raise InsufficientStockError(product_id, quantity, total_available)

        result = ConsumptionResult(product=product, quantity=quantity)

        for batch, take in plan_consumption(batches, quantity):
            batch.quantity_available -= take

            result.depleted.append((batch.id, take))
            result.cost_of_goods += take * batch.cost_per_item

            if order_id is not None:
                batch_store.record_consumption(db, order_id, batch, take)

        product.sales_qty = (product.sales_qty or 0) + quantity

        recompute(db, product)

    logger.info(
        f"Consumed {quantity} of product {product_id} "
        f"(order {order_id or '-'}) from batches {result.depleted}, cost {result.cost_of_goods}"
    )

    return result


def consume_order(db: Session, order_id: str, lines: list[tuple[int, int]]) -> list[ConsumptionResult]:
    """Consume every (product_id, quantity) line of an order.

    Each product is its own transaction. A line that fails stops
    the order; lines already applied stay applied and a retry with
    the same order_id skips them.
    """
    if not lines:
        raise ValidationError("Order must contain items")

    product_ids = [product_id for product_id, _ in lines]
    if len(product_ids) != len(set(product_ids)):
        raise ValidationError("Duplicate products in order are not allowed")

    return [
        consume(db, product_id, quantity, order_id=order_id)
        for product_id, quantity in lines
    ]


@retry_on_conflict
def _restore_product(db: Session, order_id: str, product_id: int) -> Product | None:
    with product_transaction(db, product_id) as product:
        rows = batch_store.order_consumptions(db, order_id, product_id)

        # Restored by a concurrent call
        if not rows:
            return None

        returned = 0
        for row in rows:
            batch = batch_store.get_batch(db, row.batch_id)

            if batch.quantity_available + row.quantity_consumed > batch.quantity_purchased:
                raise ValidationError(
                    f"Batch {batch.id} was edited after order {order_id} consumed from it; "
                    "returning the stock would exceed its purchased quantity"
                )

            batch.quantity_available += row.quantity_consumed
            returned += row.quantity_consumed
            db.delete(row)

        product.sales_qty = max((product.sales_qty or 0) - returned, 0)

        recompute(db, product)

    logger.info(f"Returned {returned} unit(s) of product {product_id} from order {order_id}")

    return product


def restore_order(db: Session, order_id: str) -> list[Product]:
    """Put everything an order consumed back onto the batches it came from."""
    rows = batch_store.order_consumptions(db, order_id)

    if not rows:
        raise NotFoundError(f"No consumption recorded for order {order_id}")

    consumed_by_product = defaultdict(int)
    for row in rows:
        consumed_by_product[row.product_id] += row.quantity_consumed

    restored = []
    for product_id in sorted(consumed_by_product):
        product = _restore_product(db, order_id, product_id)
        if product is not None:
            restored.append(product)

    return restored

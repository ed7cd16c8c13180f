# =========================================================
# BULK PURCHASE IMPORT
#
# One batch per imported purchase row. Rows are matched to
# products by SKU; unknown SKUs create the product first.
# Imported products never go through the bootstrapper: their
# first batch is the imported row itself.
# =========================================================

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fifo_inventory.core import batch_store
from fifo_inventory.core.batches import add_batch, validate_batch_values
from fifo_inventory.core.errors import InventoryError, ValidationError
from fifo_inventory.models.batches import ProductBatch
from fifo_inventory.models.products import STATUS_ACTIVE, Product

logger = logging.getLogger("fifo_inventory")


@dataclass
class PurchaseRow:
    sku: str
    name: str
    quantity: int
    cost_per_item: Decimal
    purchase_date: date
    batch_reference: str | None = None


@dataclass
class ImportOutcome:
    row_number: int
    sku: str
    product_id: int | None = None
    batch_id: int | None = None
    created_product: bool = False
    error: str | None = None


def _get_or_create_product(db: Session, row: PurchaseRow) -> tuple[Product, bool]:
    product = batch_store.get_product_by_sku(db, row.sku)
    if product is not None:
        return product, False

    product = Product(
        sku=row.sku,
        name=row.name,
        # Legacy counters stay empty; stock lives in the imported batch
        quantity=0,
        cost_per_item=row.cost_per_item,
        purchase_date=row.purchase_date,
        available_qty=0,
        stock_value=Decimal("0.00"),
        status=STATUS_ACTIVE,
        sales_qty=0,
    )

    try:
        db.add(product)
        db.commit()
    except IntegrityError:
        # Same SKU created by a concurrent import
        db.rollback()
        product = batch_store.get_product_by_sku(db, row.sku)
        if product is None:
            raise
        return product, False

    logger.info(f"Import created product {product.id} for SKU {row.sku}")

    return product, True


def import_purchase(db: Session, row: PurchaseRow) -> tuple[ProductBatch, bool]:
    if not row.sku or not row.sku.strip():
        raise ValidationError("SKU is required")

    if not row.name or not row.name.strip():
        raise ValidationError("Product name is required")

    # Reject a bad row before it can create a product
    validate_batch_values(row.quantity, row.quantity, row.cost_per_item)

    product, created = _get_or_create_product(db, row)

    batch = add_batch(
        db,
        product.id,
        purchase_date=row.purchase_date,
        quantity_purchased=row.quantity,
        quantity_available=row.quantity,
        cost_per_item=row.cost_per_item,
        batch_reference=row.batch_reference,
    )

    return batch, created


def import_purchases(db: Session, rows: list[PurchaseRow]) -> list[ImportOutcome]:
    """Import rows in order. A rejected row is reported and the rest continue."""
    outcomes = []

    for row_number, row in enumerate(rows, start=1):
        outcome = ImportOutcome(row_number=row_number, sku=row.sku)

        try:
            batch, created = import_purchase(db, row)
        except InventoryError as exc:
            outcome.error = exc.message
            logger.warning(f"Import row {row_number} ({row.sku}) rejected: {exc.message}")
        else:
            outcome.product_id = batch.product_id
            outcome.batch_id = batch.id
            outcome.created_product = created

        outcomes.append(outcome)

    imported = sum(1 for outcome in outcomes if outcome.error is None)
    logger.info(f"Import finished: {imported}/{len(outcomes)} row(s) imported")

    return outcomes

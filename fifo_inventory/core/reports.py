# =========================================================
# COST-BASIS & VALUATION REPORTING
# Read-only views over batches, derived product fields and
# the consumption ledger.
# =========================================================

from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from fifo_inventory.core import batch_store
from fifo_inventory.core.errors import NotFoundError
from fifo_inventory.core.fifo import select_next
from fifo_inventory.models.batches import ProductBatch
from fifo_inventory.models.products import Product


def batch_summary(db: Session, product_id: int):
    product = batch_store.get_product(db, product_id)
    batches = batch_store.list_batches(db, product_id)

    next_batch = select_next(batches)

    return {
        "product_id": product.id,
        "sku": product.sku,
        "next_batch_id": next_batch.id if next_batch else None,
        "active_batches": sum(1 for b in batches if b.quantity_available > 0),
        "depleted_batches": sum(1 for b in batches if b.quantity_available == 0),
        "total_purchased": sum(b.quantity_purchased for b in batches),
        "total_consumed": sum(b.quantity_consumed for b in batches),
        "available_qty": product.available_qty,
        "stock_value": Decimal(product.stock_value or 0),
        "status": product.status,
        "batches": [
            {
                "id": b.id,
                "purchase_date": b.purchase_date,
                "quantity_purchased": b.quantity_purchased,
                "quantity_available": b.quantity_available,
                "cost_per_item": Decimal(b.cost_per_item),
                "batch_reference": b.batch_reference,
                "state": b.state,
                "value": Decimal(b.value),
            }
            for b in batches
        ],
    }


def inventory_valuation(db: Session, status: str | None = None):
    query = db.query(Product)

    if status:
        query = query.filter(Product.status == status)

    products = query.order_by(Product.sku.asc()).all()

    total_units = sum(p.available_qty for p in products)
    total_value = sum((Decimal(p.stock_value or 0) for p in products), Decimal("0.00"))

    return {
        "total_products": len(products),
        "total_units": total_units,
        "total_stock_value": total_value,
        "products": [
            {
                "product_id": p.id,
                "sku": p.sku,
                "name": p.name,
                "available_qty": p.available_qty,
                "stock_value": Decimal(p.stock_value or 0),
                "status": p.status,
                "sales_qty": p.sales_qty,
            }
            for p in products
        ],
    }


def order_cost_basis(db: Session, order_id: str):
    rows = batch_store.order_consumptions(db, order_id)

    if not rows:
        raise NotFoundError(f"No consumption recorded for order {order_id}")

    lines = []
    total_quantity = 0
    total_cost = Decimal("0.00")

    for row in rows:
        line_cost = Decimal(row.line_cost)
        total_quantity += row.quantity_consumed
        total_cost += line_cost

        lines.append(
            {
                "product_id": row.product_id,
                "batch_id": row.batch_id,
                "purchase_date": row.batch.purchase_date,
                "quantity": row.quantity_consumed,
                "unit_cost": Decimal(row.unit_cost),
                "line_cost": line_cost,
            }
        )

    return {
        "order_id": order_id,
        "total_quantity": total_quantity,
        "cost_of_goods": total_cost,
        "lines": lines,
    }


def stock_totals(db: Session):
    """Grand totals straight from the batch table, for reconciling the product rollup."""
    units, value = db.query(
        func.coalesce(func.sum(ProductBatch.quantity_available), 0),
        func.coalesce(func.sum(ProductBatch.quantity_available * ProductBatch.cost_per_item), 0),
    ).one()

    return int(units or 0), Decimal(value or 0)

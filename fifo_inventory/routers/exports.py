from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session, joinedload
from datetime import datetime, timezone
from decimal import Decimal
from io import BytesIO

from openpyxl import Workbook

from fifo_inventory.database import get_db
from fifo_inventory.core.fifo import select_next
from fifo_inventory.core.rate_limiter import limiter
from fifo_inventory.core.reports import stock_totals
from fifo_inventory.models.products import Product

router = APIRouter(prefix="/exports", tags=["Exports"])


# =========================================================
# EXPORT ROUTES
# =========================================================

@router.get("/valuation")
@limiter.limit("10/minute")
def export_valuation(request: Request, db: Session = Depends(get_db)):
    today = datetime.now(timezone.utc).date()

    products = (
        db.query(Product)
        .options(joinedload(Product.batches))
        .order_by(Product.sku.asc())
        .all()
    )

    return _build_excel(
        db=db,
        products=products,
        filename=f"stock_valuation_{today}.xlsx",
    )


# =========================================================
# EXCEL BUILDER
# =========================================================
def _build_excel(db: Session, products: list[Product], filename: str):

    workbook = Workbook()

    # =======================
    # SHEET 1 - BATCHES (FIFO ORDER)
    # =======================
    sheet = workbook.active
    sheet.title = "Batches"

    sheet.append([
        "SKU",
        "Product",
        "Batch ID",
        "Purchase Date",
        "Reference",
        "Purchased",
        "Available",
        "Cost Per Item",
        "Batch Value",
        "State",
        "Next To Sell",
    ])

    for product in products:
        batches = sorted(product.batches, key=lambda b: (b.purchase_date, b.id))
        upcoming = select_next(batches)

        for batch in batches:
            sheet.append([
                product.sku,
                product.name,
                batch.id,
                batch.purchase_date.strftime("%Y-%m-%d"),
                batch.batch_reference or "",
                batch.quantity_purchased,
                batch.quantity_available,
                float(batch.cost_per_item),
                float(batch.value),
                batch.state,
                "yes" if upcoming is not None and upcoming.id == batch.id else "",
            ])

    # =======================
    # SHEET 2 - PRODUCT SUMMARY
    # =======================
    summary = workbook.create_sheet(title="Product Summary")

    summary.append([
        "SKU",
        "Product",
        "Available Qty",
        "Stock Value",
        "Status",
        "Units Sold",
    ])

    total_value = Decimal("0.00")
    total_units = 0

    for product in products:
        total_value += Decimal(product.stock_value or 0)
        total_units += product.available_qty

        summary.append([
            product.sku,
            product.name,
            product.available_qty,
            float(product.stock_value or 0),
            product.status,
            product.sales_qty,
        ])

    summary.append([])
    summary.append(["Total Units", total_units])
    summary.append(["Total Stock Value", float(total_value)])

    # Batch-level totals must agree with the product rollup
    batch_units, batch_value = stock_totals(db)
    summary.append(["Batch Units", batch_units])
    summary.append(["Batch Stock Value", float(batch_value)])

    # =======================
    # RETURN FILE
    # =======================
    output = BytesIO()
    workbook.save(output)
    output.seek(0)

    return StreamingResponse(
        output,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

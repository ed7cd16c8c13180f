# fifo_inventory/routers/imports.py

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from fifo_inventory.database import get_db
from fifo_inventory.core.config import settings
from fifo_inventory.core.imports import PurchaseRow, import_purchases
from fifo_inventory.core.rate_limiter import limiter
from fifo_inventory.schemas.imports import PurchaseImportCreate, PurchaseImportResponse

router = APIRouter(prefix="/imports", tags=["Imports"])


@router.post("/purchases", response_model=PurchaseImportResponse)
@limiter.limit(settings.IMPORT_RATE_LIMIT)
def import_purchase_rows(
    request: Request,
    import_data: PurchaseImportCreate,
    db: Session = Depends(get_db),
):
    if not import_data.rows:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Import must contain rows",
        )

    outcomes = import_purchases(
        db,
        [PurchaseRow(**row.model_dump()) for row in import_data.rows],
    )

    failed = sum(1 for outcome in outcomes if outcome.error is not None)

    return {
        "total_rows": len(outcomes),
        "imported_rows": len(outcomes) - failed,
        "failed_rows": failed,
        "results": outcomes,
    }

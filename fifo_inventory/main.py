# Main application file



import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from fifo_inventory.database import engine, Base
from fifo_inventory.core.rate_limiter import limiter
from fifo_inventory.core.config import settings
from fifo_inventory.core.errors import InventoryError
from fifo_inventory.routers import (
    products,
    batches,
    orders,
    imports,
    reports,
    exports,
)


# LOGGING CONFIGURATION

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger("fifo_inventory")


# SCHEMA (development only; production schema is managed by alembic)

@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.ENV == "development":
        Base.metadata.create_all(bind=engine)
    yield


# APP INIT

app = FastAPI(
    title="FIFO Inventory Ledger API",
    description="Batch-level FIFO costing and stock valuation for resellers",
    version="1.0.0",
    lifespan=lifespan,
)



# CORS

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ],
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type"],
)


# RATE LIMITING

app.state.limiter = limiter
app.add_exception_handler(
    RateLimitExceeded,
    _rate_limit_exceeded_handler
)


# ENGINE ERRORS -> HTTP

@app.exception_handler(InventoryError)
async def inventory_error_handler(request: Request, exc: InventoryError):
    logger.info(
        f"{request.method} {request.url.path} "
        f"rejected: {type(exc).__name__}: {exc.message}"
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


# REQUEST LOGGING MIDDLEWARE

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    duration = round((time.time() - start_time) * 1000, 2)

    logger.info(
        f"{request.method} {request.url.path} "
        f"Status: {response.status_code} "
        f"Time: {duration}ms"
    )

    return response


# ROUTERS

app.include_router(products.router)
app.include_router(batches.router)
app.include_router(orders.router)
app.include_router(imports.router)
app.include_router(reports.router)
app.include_router(exports.router)



# ROOT

@app.get("/")
def root():
    logger.info("Health check endpoint called")
    return {"message": "FIFO Inventory Ledger API is running"}

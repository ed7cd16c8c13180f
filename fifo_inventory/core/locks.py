# =========================================================
# PER-PRODUCT EXCLUSIVE SECTION
#
# Every write to a product's batches runs inside
# product_transaction(): an in-process mutex keyed by product
# id plus a row lock on the product, held from the first read
# until commit. Products never share a lock.
#
# Lost updates (version mismatch, serialization failure, locked
# SQLite file) surface as ConcurrencyConflictError and the
# public operation is re-run once with a fresh read.
# =========================================================

import logging
import threading
import weakref
from contextlib import contextmanager
from functools import wraps

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from fifo_inventory.core.config import settings
from fifo_inventory.core.errors import ConcurrencyConflictError, NotFoundError
from fifo_inventory.models.products import Product

logger = logging.getLogger("fifo_inventory")

# serialization_failure, deadlock_detected, lock_not_available
TRANSIENT_SQLSTATES = {"40001", "40P01", "55P03"}

_registry_lock = threading.Lock()

# An entry lives only while some caller holds a reference to its lock
_product_locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()


def _lock_for(product_id: int) -> threading.Lock:
    with _registry_lock:
        lock = _product_locks.get(product_id)
        if lock is None:
            lock = threading.Lock()
            _product_locks[product_id] = lock
        return lock


def is_transient(exc: Exception) -> bool:
    if isinstance(exc, StaleDataError):
        return True

    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated:
            return True

        sqlstate = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
        if sqlstate in TRANSIENT_SQLSTATES:
            return True

        return "database is locked" in str(exc.orig).lower()

    return False


@contextmanager
def product_transaction(db: Session, product_id: int):
    """Lock the product, yield it freshly loaded, commit on exit.

    Any exception rolls back every write made inside the block.
    """
    lock = _lock_for(product_id)

    with lock:
        # Drop anything read before the lock was taken
        db.expire_all()

        try:
            product = (
                db.query(Product)
                .filter(Product.id == product_id)
                .with_for_update()
                .first()
            )

            if product is None:
                raise NotFoundError(f"Product {product_id} not found")

            yield product

            db.commit()

        except (StaleDataError, DBAPIError) as exc:
            db.rollback()

            if is_transient(exc):
                raise ConcurrencyConflictError(
                    f"Concurrent update detected on product {product_id}"
                ) from exc

            raise

        except Exception:
            db.rollback()
            raise


def retry_on_conflict(func):
    """Re-run a public operation after a ConcurrencyConflictError.

    The wrapped function's first argument must be the Session.
    """

    @wraps(func)
    def wrapper(db: Session, *args, **kwargs):
        retries_left = settings.CONFLICT_RETRIES

        while True:
            try:
                return func(db, *args, **kwargs)

            except ConcurrencyConflictError:
                if retries_left <= 0:
                    logger.warning(f"{func.__name__}: concurrency conflict, giving up")
                    raise

                retries_left -= 1
                logger.warning(f"{func.__name__}: concurrency conflict, retrying with a fresh read")
                db.expire_all()

    return wrapper

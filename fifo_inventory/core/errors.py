# =========================================================
# INVENTORY ENGINE ERRORS
#
# Every public engine operation fails with one of these.
# None of them is swallowed inside the engine; the API layer
# maps them to HTTP status codes in main.py.
# =========================================================


class InventoryError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InventoryError):
    """Malformed input: negative quantities, available above purchased,
    purchased reduced below what was already consumed."""

    status_code = 400


class BatchInUseError(InventoryError):
    """Delete attempted on a batch that has been consumed from."""

    status_code = 409

    def __init__(self, batch_id: int, consumed: int):
        super().__init__(
            f"Cannot delete batch {batch_id}: {consumed} unit(s) already consumed"
        )
        self.batch_id = batch_id
        self.consumed = consumed


class InsufficientStockError(InventoryError):
    status_code = 409

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}. "
            f"Requested: {requested}, Available: {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available

    @property
    def shortfall(self) -> int:
        return self.requested - self.available


class ConcurrencyConflictError(InventoryError):
    status_code = 409


class NotFoundError(InventoryError):
    status_code = 404

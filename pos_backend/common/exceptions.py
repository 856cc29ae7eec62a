# common/exceptions.py

"""
SALE ENGINE ERRORS

Centralized domain errors for the sale / inventory engine.

Every error carries a stable `code` so the API layer can render it
without inspecting the message.
"""


class SaleEngineError(Exception):
    """Base exception for all engine failures."""

    code = "engine_error"

    def __init__(self, message: str = "", **context):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(SaleEngineError):
    """Raised when a command is malformed."""

    code = "validation_error"


class DuplicateSaleError(SaleEngineError):
    """Raised on a repeated idempotency key or a double-submit inside the window."""

    code = "duplicate_sale"


class InsufficientStockError(SaleEngineError):
    """Raised when a line asks for more than current stock (negative stock disallowed)."""

    code = "insufficient_stock"


class NotFoundError(SaleEngineError):
    """Raised when a sale, product, customer or delegate does not exist."""

    code = "not_found"


class ConsistencyError(SaleEngineError):
    """Raised when an operation would break a sale / stock / debt invariant."""

    code = "consistency_error"


class ReturnRangeError(ConsistencyError):
    """Raised when a return asks for more units than remain on a line."""

    code = "return_out_of_range"


class PersistenceError(SaleEngineError):
    """Raised when the underlying store fails."""

    code = "persistence_error"

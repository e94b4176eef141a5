# Overview: Error taxonomy shared by services and routes.

"""
Inventory error taxonomy.

Every error a core operation can raise derives from InventoryError and
carries the HTTP status the routes answer with. Validation and ownership
errors are raised before any write; everything else is raised inside a
unit of work and rolls it back.
"""


class InventoryError(Exception):
    """Base class for all expected inventory failures."""

    status_code = 500

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    default_message = "Inventory operation failed"

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(InventoryError, ValueError):
    """400-level input problem (missing fields, non-positive quantities or prices)."""

    status_code = 400
    default_message = "Invalid input"


class NotFoundError(InventoryError):
    """Referenced row is absent or not owned by the caller."""

    status_code = 404
    default_message = "Not found"


class InsufficientStockError(InventoryError):
    """A guarded outflow would drive product stock negative."""

    status_code = 409
    default_message = "Insufficient stock"

    def __init__(self, product_id: int, requested: int | None = None, available: int | None = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        msg = f"Product {product_id} does not have enough stock"
        if requested is not None and available is not None:
            msg += f" (requested {requested}, available {available})"
        super().__init__(msg)


class InvalidStateTransitionError(InventoryError):
    """The requested status change is not allowed for this document."""

    status_code = 409
    default_message = "Invalid status transition"


class DuplicateLineItemError(InventoryError):
    """The same product appears twice in one order or return."""

    status_code = 409

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product {product_id} is already included in this document")


class PersistenceError(InventoryError):
    """Underlying store failure; the unit of work was rolled back."""

    status_code = 500
    default_message = "Internal server error"


class UnitOfWorkTimeoutError(PersistenceError):
    """The unit of work outlived its deadline and was abandoned."""

    default_message = "Operation timed out"

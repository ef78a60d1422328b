# sales/services/exceptions.py

"""
POS DOMAIN ERRORS

Centralized domain errors for cart, checkout, payment and transaction services.

Every error carries a stable `code` (used by the API error contract) and a
human-readable message. No internal detail is ever attached.
"""


class PharmacyPOSError(Exception):
    """Base exception for all POS domain failures."""

    code = "POS_ERROR"

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        if code:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


# ------------------------------------------------------------
# VALIDATION
# ------------------------------------------------------------

class ValidationError(PharmacyPOSError):
    """Malformed or out-of-range input."""

    code = "VALIDATION_ERROR"


class InvalidQuantityError(ValidationError):
    """Quantity must be a whole number of at least 1."""

    code = "INVALID_QUANTITY"


class EmptyCartError(ValidationError):
    """Cart is empty."""

    code = "EMPTY_CART"


# ------------------------------------------------------------
# NOT FOUND
# ------------------------------------------------------------

class NotFoundError(PharmacyPOSError):
    """Referenced entity does not exist."""

    code = "NOT_FOUND"


class ItemNotFoundError(NotFoundError):
    """Item not found in cart."""

    code = "ITEM_NOT_FOUND"


class ProductNotFoundError(NotFoundError):
    """Medicine not found."""

    code = "PRODUCT_NOT_FOUND"


class AddressNotFoundError(NotFoundError):
    """Delivery address not found."""

    code = "ADDRESS_NOT_FOUND"


class PaymentMethodNotFoundError(NotFoundError):
    """Payment method not found."""

    code = "PAYMENT_METHOD_NOT_FOUND"


class TransactionNotFoundError(NotFoundError):
    """Transaction not found."""

    code = "TRANSACTION_NOT_FOUND"


# ------------------------------------------------------------
# STOCK
# ------------------------------------------------------------

class InsufficientStockError(PharmacyPOSError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, *, product_name: str, product_ref=None, available: int = 0, requested: int = 0):
        self.product_name = product_name
        self.product_ref = product_ref
        self.available = int(available)
        self.requested = int(requested)
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {self.available}"
        )


# ------------------------------------------------------------
# PAYMENT
# ------------------------------------------------------------

class PaymentFailedError(PharmacyPOSError):
    """Payment failed."""

    code = "PAYMENT_FAILED"


class UnsupportedPaymentMethodError(PaymentFailedError):
    """Unsupported payment method."""

    code = "UNSUPPORTED_PAYMENT_METHOD"


class PaymentTimeoutError(PaymentFailedError):
    """Payment gateway did not respond in time."""

    code = "PAYMENT_TIMEOUT"


# ------------------------------------------------------------
# STATE
# ------------------------------------------------------------

class StateError(PharmacyPOSError):
    """Operation is not valid for the current status."""

    code = "INVALID_STATE"


class RefundNotAllowedError(StateError):
    """Transaction cannot be refunded."""

    code = "REFUND_NOT_ALLOWED"


class InvalidDeliveryTransitionError(StateError):
    """Delivery status transition is not allowed."""

    code = "INVALID_DELIVERY_TRANSITION"


class TransactionNotEditableError(StateError):
    """Transaction not found or not editable."""

    code = "TRANSACTION_NOT_EDITABLE"


class CartNotActiveError(StateError):
    """Cart is inactive and cannot be modified."""

    code = "CART_NOT_ACTIVE"


# ------------------------------------------------------------
# INTEGRITY
# ------------------------------------------------------------

class IdGenerationError(PharmacyPOSError):
    """Failed to generate unique transaction ID."""

    code = "ID_GENERATION_FAILED"


class ConsistencyError(PharmacyPOSError):
    """Stored financial data violates an aggregate invariant."""

    code = "CONSISTENCY_ERROR"

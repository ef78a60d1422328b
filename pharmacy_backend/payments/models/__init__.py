from .payment_method import StoredPaymentMethod

__all__ = ["StoredPaymentMethod"]

from .checkout import (
    CheckoutInputSerializer,
    CheckoutSummaryQuerySerializer,
    DeliveryOptionInputSerializer,
    ProcessPaymentInputSerializer,
    QuickCheckoutInputSerializer,
)
from .commands import (
    CancelCommandSerializer,
    DeliveryStatusCommandSerializer,
    RefundCommandSerializer,
)
from .transaction import (
    TransactionItemSerializer,
    TransactionListSerializer,
    TransactionRefundSerializer,
    TransactionSerializer,
)

__all__ = [
    "CheckoutInputSerializer",
    "QuickCheckoutInputSerializer",
    "ProcessPaymentInputSerializer",
    "DeliveryOptionInputSerializer",
    "CheckoutSummaryQuerySerializer",
    "RefundCommandSerializer",
    "DeliveryStatusCommandSerializer",
    "CancelCommandSerializer",
    "TransactionSerializer",
    "TransactionListSerializer",
    "TransactionItemSerializer",
    "TransactionRefundSerializer",
]

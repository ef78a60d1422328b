# sales/models/__init__.py

"""
SALES MODELS PACKAGE EXPORTS

Purpose:
- Central export surface for sales app models.
"""

from .delivery_address import DeliveryAddress
from .sequence import Sequence
from .transaction import Transaction
from .transaction_item import TransactionItem
from .transaction_refund import TransactionRefund

__all__ = [
    "DeliveryAddress",
    "Sequence",
    "Transaction",
    "TransactionItem",
    "TransactionRefund",
]

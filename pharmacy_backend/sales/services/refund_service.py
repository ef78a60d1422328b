# sales/services/refund_service.py

"""
REFUND SERVICE

Purpose:
- Apply a money refund to a completed (or partially refunded) transaction.
- Refunds are append-only TransactionRefund rows; the amount is capped at
  the remaining balance by Transaction.process_refund.

Notes:
- No stock is restored here; returned goods come back through a
  `return` transaction or a manual stock adjustment.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction

from sales.models import Transaction
from sales.services.transaction_lifecycle import get_transaction_for_update

logger = logging.getLogger(__name__)


@transaction.atomic
def refund_transaction(
    transaction_pk,
    *,
    amount,
    user,
    owner=None,
    reason: str = "",
    payment_method: str | None = None,
    notes: str = "",
) -> tuple[Transaction, Decimal]:
    """
    Returns (transaction, refunded_amount). The refunded amount may be lower
    than requested when it exceeds the remaining balance.
    """
    txn = get_transaction_for_update(transaction_pk, owner=owner)

    refunded = txn.process_refund(
        amount=amount,
        processed_by=user,
        reason=reason,
        payment_method=payment_method,
        notes=notes,
    )

    logger.info(
        "Refund processed",
        extra={
            "transaction_id": txn.transaction_id,
            "requested": str(amount),
            "refunded": str(refunded),
            "status": txn.status,
        },
    )
    return txn, refunded

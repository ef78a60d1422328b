"""
TRANSACTION LIFECYCLE DOMAIN RULES

Delivery state machine and administrative cancellation.

DESIGN PRINCIPLES:
- The transition table is the single source of truth
- Invalid transitions are rejected, never applied
- Every write locks the transaction row first
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from sales.models import Transaction
from sales.services.exceptions import (
    InvalidDeliveryTransitionError,
    TransactionNotEditableError,
    TransactionNotFoundError,
)

logger = logging.getLogger(__name__)


# ============================================================
# STATE DEFINITIONS
# ============================================================

DELIVERY_TRANSITIONS = {
    Transaction.DELIVERY_PENDING: {
        Transaction.DELIVERY_CONFIRMED,
        Transaction.DELIVERY_CANCELLED,
    },
    Transaction.DELIVERY_CONFIRMED: {
        Transaction.DELIVERY_PREPARING,
        Transaction.DELIVERY_CANCELLED,
    },
    Transaction.DELIVERY_PREPARING: {
        Transaction.DELIVERY_OUT_FOR_DELIVERY,
        Transaction.DELIVERY_CANCELLED,
    },
    Transaction.DELIVERY_OUT_FOR_DELIVERY: {
        Transaction.DELIVERY_DELIVERED,
        Transaction.DELIVERY_FAILED,
        Transaction.DELIVERY_CANCELLED,
    },
    Transaction.DELIVERY_DELIVERED: set(),
    Transaction.DELIVERY_CANCELLED: set(),
    Transaction.DELIVERY_FAILED: {
        Transaction.DELIVERY_CANCELLED,
    },
    Transaction.DELIVERY_NOT_APPLICABLE: set(),
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition_delivery(*, from_status: str, to_status: str) -> bool:
    return to_status in DELIVERY_TRANSITIONS.get(from_status, set())


def get_transaction_for_update(transaction_pk, *, owner=None) -> Transaction:
    qs = Transaction.objects.select_for_update()
    if owner is not None:
        qs = qs.filter(owner=owner)
    try:
        return qs.get(pk=transaction_pk)
    except (Transaction.DoesNotExist, DjangoValidationError, ValueError):
        raise TransactionNotFoundError(f"Transaction {transaction_pk} not found")


@transaction.atomic
def update_delivery_status(transaction_pk, *, new_status: str, user, owner=None, notes: str = "") -> Transaction:
    txn = get_transaction_for_update(transaction_pk, owner=owner)

    if not txn.validate_delivery_transition(new_status):
        raise InvalidDeliveryTransitionError(
            f"Cannot change delivery status from '{txn.delivery_status}' to '{new_status}'"
        )

    previous = txn.delivery_status
    txn.delivery_status = new_status
    if new_status == Transaction.DELIVERY_DELIVERED:
        txn.actual_delivery = timezone.now()
    if notes:
        txn.delivery_notes = notes.strip()
    txn.updated_by = user
    txn.save()

    logger.info(
        "Delivery status updated",
        extra={
            "transaction_id": txn.transaction_id,
            "from_status": previous,
            "to_status": new_status,
        },
    )
    return txn


@transaction.atomic
def cancel_transaction(transaction_pk, *, user, reason: str = "", owner=None) -> Transaction:
    """
    Administrative cancellation of an unfinished transaction.
    Completed and refunded transactions are never cancelled; refund them instead.
    """
    txn = get_transaction_for_update(transaction_pk, owner=owner)

    if txn.status not in Transaction.EDITABLE_STATUSES:
        raise TransactionNotEditableError(
            f"Transaction in status '{txn.status}' cannot be cancelled"
        )

    txn.status = Transaction.STATUS_CANCELLED
    txn.cancelled_by = user
    txn.cancellation_reason = (reason or "").strip()
    txn.cancelled_at = timezone.now()
    if can_transition_delivery(
        from_status=txn.delivery_status, to_status=Transaction.DELIVERY_CANCELLED
    ):
        txn.delivery_status = Transaction.DELIVERY_CANCELLED
    txn.updated_by = user
    txn.save()

    logger.info(
        "Transaction cancelled",
        extra={"transaction_id": txn.transaction_id, "reason": txn.cancellation_reason},
    )
    return txn

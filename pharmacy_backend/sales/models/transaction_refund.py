# sales/models/transaction_refund.py

"""
======================================================
PATH: sales/models/transaction_refund.py
======================================================
TRANSACTION REFUND (APPEND-ONLY LEDGER)

Purpose:
- One row per refund issued against a transaction.
- The sum of amounts is the transaction's total_refunded.

Design guarantees:
- Append-only (no updates, no deletes)
- Over-refunding is prevented by Transaction.process_refund (amount is capped
  at the remaining balance before the row is written)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from .transaction import Transaction

User = settings.AUTH_USER_MODEL


class TransactionRefund(models.Model):
    METHOD_CREDIT_NOTE = "credit_note"

    REFUND_METHOD_CHOICES = Transaction.PAYMENT_METHOD_CHOICES + [
        (METHOD_CREDIT_NOTE, "Credit note"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    transaction = models.ForeignKey(
        Transaction,
        on_delete=models.PROTECT,
        related_name="refunds",
    )

    refund_ref = models.CharField(max_length=40, unique=True, editable=False)

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    reason = models.CharField(max_length=500, blank=True)
    payment_method = models.CharField(
        max_length=20, choices=REFUND_METHOD_CHOICES
    )
    notes = models.TextField(blank=True)

    processed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name="transaction_refunds",
    )
    processed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["processed_at"]
        indexes = [
            models.Index(fields=["transaction", "processed_at"], name="txn_refund_txn_processed_idx"),
        ]

    # --------------------------------------------------
    # IMMUTABILITY
    # --------------------------------------------------

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("TransactionRefund records are immutable")

        if Decimal(str(self.amount or 0)) <= Decimal("0.00"):
            raise ValueError("amount must be greater than zero")

        if not self.refund_ref:
            from sales.services.identifiers import generate_unique_id

            self.refund_ref = generate_unique_id("RFD", field="refund_ref")

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("TransactionRefund records cannot be deleted")

    def __str__(self):
        return f"{self.refund_ref} | {self.amount}"

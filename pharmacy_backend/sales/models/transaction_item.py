# sales/models/transaction_item.py

"""
TRANSACTION ITEM (SNAPSHOT)

A priced medicine line captured at sale time.

Notes:
- Lines are written together with their transaction (create_with_items).
- Once the parent leaves draft / pending / on_hold the lines are frozen.
"""

from __future__ import annotations

import uuid

from django.db import models
from django.utils import timezone

from products.models.line_item import MedicineLineItem
from sales.services.exceptions import TransactionNotEditableError

from .transaction import Transaction


class TransactionItem(MedicineLineItem):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    transaction = models.ForeignKey(
        Transaction,
        on_delete=models.CASCADE,
        related_name="items",
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["transaction", "created_at"], name="txn_item_txn_created_idx"),
            models.Index(fields=["medicine", "created_at"], name="txn_item_medicine_created_idx"),
        ]

    def _assert_parent_editable(self):
        parent = self.transaction
        if parent._accepting_items:
            return
        if parent.status not in Transaction.EDITABLE_STATUSES:
            raise TransactionNotEditableError(
                f"Items are immutable once the transaction is {parent.status}"
            )

    def save(self, *args, **kwargs):
        self._assert_parent_editable()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        self._assert_parent_editable()
        return super().delete(*args, **kwargs)

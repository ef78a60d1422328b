# products/models/medicine.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from store.models import Store

User = settings.AUTH_USER_MODEL


class Medicine(models.Model):
    """
    Represents a sellable medicine in a pharmacy catalog.

    STOCK MODEL:
    - `quantity` is the on-hand stock for this catalog row.
    - Stock is mutated ONLY via products.services.inventory
      (conditional decrement at checkout, signed adjustments otherwise).

    PRICING:
    - `unit_price` is the current selling price (snapshotted into line items).
    - `cost_price` is the purchase cost used for profit/margin snapshots.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="medicines",
        help_text="Owning pharmacy account.",
    )

    store = models.ForeignKey(
        Store,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="medicines",
    )

    sku = models.CharField(max_length=128, unique=True, null=True, blank=True)

    name = models.CharField(max_length=200, db_index=True)
    generic_name = models.CharField(max_length=200)
    form = models.CharField(max_length=50, blank=True)
    pack_size = models.CharField(max_length=50, blank=True)

    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
    )

    quantity = models.IntegerField(default=0, help_text="On-hand stock units")
    low_stock_threshold = models.PositiveIntegerField(default=10)

    expiry_date = models.DateField(null=True, blank=True)
    batch_number = models.CharField(max_length=50, blank=True)
    manufacturer = models.CharField(max_length=100, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["pharmacy", "name"], name="medicine_pharmacy_name_idx"),
            models.Index(fields=["generic_name"], name="medicine_generic_name_idx"),
        ]

    def clean(self):
        if self.unit_price is None or Decimal(self.unit_price) < Decimal("0.00"):
            raise ValidationError({"unit_price": "Unit price cannot be negative"})

        if self.cost_price is not None and Decimal(self.cost_price) < Decimal("0.00"):
            raise ValidationError({"cost_price": "Cost price cannot be negative"})

    def save(self, *args, **kwargs):
        if self.batch_number:
            self.batch_number = self.batch_number.strip().upper()
        super().save(*args, **kwargs)

    @property
    def is_low_stock(self) -> bool:
        return int(self.quantity or 0) <= int(self.low_stock_threshold or 0)

    def __str__(self):
        return f"{self.name} ({self.generic_name})"

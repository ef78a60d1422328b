# products/models/line_item.py

"""
LINE ITEM (ABSTRACT)

A priced, quantity-bearing medicine snapshot owned by a parent aggregate
(pos.CartItem, sales.TransactionItem).

Rules:
- quantity is a whole number >= 1
- unit_price / cost_price are >= 0
- total_price == quantity * unit_price, assigned on every write
- expiry_date, when present, must be in the future
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from sales.services.exceptions import ConsistencyError

from .medicine import Medicine

TWOPLACES = Decimal("0.01")


def line_total(quantity, unit_price) -> Decimal:
    return (Decimal(str(unit_price or 0)) * Decimal(int(quantity or 0))).quantize(
        TWOPLACES, rounding=ROUND_HALF_UP
    )


class MedicineLineItem(models.Model):
    medicine = models.ForeignKey(
        Medicine,
        on_delete=models.SET_NULL,
        null=True,
        related_name="%(app_label)s_%(class)s_lines",
    )

    medicine_name = models.CharField(max_length=200)
    generic_name = models.CharField(max_length=200)
    form = models.CharField(max_length=50, blank=True)
    pack_size = models.CharField(max_length=50, blank=True)

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
    )

    expiry_date = models.DateField(null=True, blank=True)
    batch_number = models.CharField(max_length=50, blank=True)
    manufacturer = models.CharField(max_length=100, blank=True)

    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Unit cost snapshot used for profit calculation.",
    )

    class Meta:
        abstract = True

    @classmethod
    def values_from_medicine(cls, medicine: Medicine, *, quantity, unit_price=None, **overrides) -> dict:
        """
        Catalog snapshot for a new line. Caller-supplied unit_price wins over the
        catalog price; everything else is copied from the medicine row.
        """
        price = unit_price if unit_price not in (None, "") else medicine.unit_price
        values = {
            "medicine": medicine,
            "medicine_name": medicine.name,
            "generic_name": medicine.generic_name,
            "form": medicine.form or "",
            "pack_size": medicine.pack_size or "",
            "quantity": quantity,
            "unit_price": Decimal(str(price)),
            "expiry_date": medicine.expiry_date,
            "batch_number": medicine.batch_number or "",
            "manufacturer": medicine.manufacturer or "",
            "cost_price": medicine.cost_price,
        }
        values.update({k: v for k, v in overrides.items() if v not in (None, "")})
        return values

    def clean(self):
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValidationError({"quantity": "Quantity must be an integer"})
        if self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1"})

        if self.unit_price is None or Decimal(str(self.unit_price)) < Decimal("0.00"):
            raise ValidationError({"unit_price": "Unit price cannot be negative"})

        if self.cost_price is not None and Decimal(str(self.cost_price)) < Decimal("0.00"):
            raise ValidationError({"cost_price": "Cost price cannot be negative"})

        if self.expiry_date and self.expiry_date <= timezone.localdate():
            raise ValidationError({"expiry_date": "Expiry date must be in the future"})

    def compute_total(self) -> Decimal:
        self.total_price = line_total(self.quantity, self.unit_price)
        return self.total_price

    def assert_consistent(self) -> None:
        expected = line_total(self.quantity, self.unit_price)
        if Decimal(str(self.total_price)) != expected:
            raise ConsistencyError(
                f"Line '{self.medicine_name}' total {self.total_price} "
                f"!= quantity x unit price ({expected})"
            )

    @property
    def unit_profit(self) -> Decimal:
        return Decimal(str(self.unit_price or 0)) - Decimal(str(self.cost_price or 0))

    def save(self, *args, **kwargs):
        if self.batch_number:
            self.batch_number = self.batch_number.strip().upper()
        self.compute_total()
        self.full_clean(validate_unique=False, validate_constraints=False)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.medicine_name} x {self.quantity}"

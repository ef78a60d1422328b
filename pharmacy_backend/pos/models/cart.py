"""
PATH: pos/models/cart.py

CART MODEL

Purpose:
- Mutable pre-transaction basket for one pharmacy staff member.
- Owns running totals, discount, tax and expiry.

Rules:
- One ACTIVE cart per user and transaction type (DB constraint).
- Totals are derived from the lines by recompute_totals(); callers never set them.
- final_amount = total_amount - discount_value + tax_amount (floored at 0), where
  discount_value is the fixed amount or total_amount * percent / 100.
- Created with a 24h expiry (settings.POS["CART_TTL_HOURS"]); expired carts are
  purged by the `purge_expired_carts` management command.
- completed / abandoned / cancelled carts are dead but retained for audit.
"""

import uuid
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

User = settings.AUTH_USER_MODEL

TWOPLACES = Decimal("0.01")


def _money(x) -> Decimal:
    return Decimal(str(x or "0")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def default_cart_expiry():
    hours = int(getattr(settings, "POS", {}).get("CART_TTL_HOURS", 24))
    return timezone.now() + timedelta(hours=hours)


class Cart(models.Model):
    TYPE_SALE = "sale"
    TYPE_PURCHASE = "purchase"
    TYPE_RETURN = "return"
    TYPE_ADJUSTMENT = "adjustment"

    TRANSACTION_TYPE_CHOICES = (
        (TYPE_SALE, "Sale"),
        (TYPE_PURCHASE, "Purchase"),
        (TYPE_RETURN, "Return"),
        (TYPE_ADJUSTMENT, "Adjustment"),
    )

    STATUS_ACTIVE = "active"
    STATUS_COMPLETED = "completed"
    STATUS_ABANDONED = "abandoned"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = (
        (STATUS_ACTIVE, "Active"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_ABANDONED, "Abandoned"),
        (STATUS_CANCELLED, "Cancelled"),
    )

    DISCOUNT_FIXED = "fixed"
    DISCOUNT_PERCENTAGE = "percentage"

    DISCOUNT_TYPE_CHOICES = (
        (DISCOUNT_FIXED, "Fixed"),
        (DISCOUNT_PERCENTAGE, "Percentage"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="pharmacy_carts",
        help_text="Pharmacy account the cart belongs to.",
    )

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="carts",
        help_text="Staff member operating the cart.",
    )

    transaction_type = models.CharField(
        max_length=20, choices=TRANSACTION_TYPE_CHOICES, default=TYPE_SALE
    )

    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_items = models.PositiveIntegerField(default=0)
    total_quantity = models.PositiveIntegerField(default=0)

    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount_type = models.CharField(
        max_length=20, choices=DISCOUNT_TYPE_CHOICES, default=DISCOUNT_FIXED
    )
    discount_reason = models.CharField(max_length=255, blank=True)

    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    final_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    payment_method = models.CharField(max_length=30, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    customer_name = models.CharField(max_length=100, blank=True)
    customer_phone = models.CharField(max_length=30, blank=True)
    customer_email = models.EmailField(blank=True)
    description = models.CharField(max_length=500, blank=True)
    notes = models.TextField(max_length=1000, blank=True)

    expires_at = models.DateTimeField(default=default_cart_expiry, db_index=True)
    last_activity = models.DateTimeField(default=timezone.now, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["owner", "status"], name="cart_owner_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "transaction_type"],
                condition=Q(status="active"),
                name="one_active_cart_per_user_type",
            )
        ]

    # ------------------------------------------------------------
    # DERIVED STATE
    # ------------------------------------------------------------
    @property
    def discount_value(self) -> Decimal:
        amount = _money(self.discount_amount)
        if self.discount_type == self.DISCOUNT_PERCENTAGE:
            return _money(_money(self.total_amount) * amount / Decimal("100"))
        return amount

    def recompute_totals(self, lines=None) -> None:
        """
        Derive total_amount / total_items / total_quantity / final_amount from lines.

        `lines` may be passed to avoid a query when the caller already holds them.
        """
        if lines is None:
            lines = [] if self._state.adding else list(self.items.all())

        for line in lines:
            if not line._state.adding:
                line.assert_consistent()

        self.total_amount = _money(sum((_money(l.total_price) for l in lines), Decimal("0.00")))
        self.total_items = len(lines)
        self.total_quantity = sum(int(l.quantity) for l in lines)

        final = self.total_amount - self.discount_value + _money(self.tax_amount)
        self.final_amount = _money(max(final, Decimal("0.00")))
        self.last_activity = timezone.now()

    def is_expired(self, now=None) -> bool:
        return self.expires_at < (now or timezone.now())

    @property
    def is_active(self) -> bool:
        return self.status == self.STATUS_ACTIVE

    @property
    def age_in_hours(self) -> int:
        if not self.created_at:
            return 0
        return int((timezone.now() - self.created_at).total_seconds() // 3600)

    # ------------------------------------------------------------
    # VALIDATION
    # ------------------------------------------------------------
    def clean(self):
        if _money(self.discount_amount) < 0:
            raise ValidationError({"discount_amount": "Discount cannot be negative"})

        if (
            self.discount_type == self.DISCOUNT_PERCENTAGE
            and _money(self.discount_amount) > Decimal("100")
        ):
            raise ValidationError({"discount_amount": "Percentage discount cannot exceed 100"})

        if _money(self.tax_amount) < 0:
            raise ValidationError({"tax_amount": "Tax cannot be negative"})

    def save(self, *args, **kwargs):
        self.full_clean(validate_constraints=False)
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"Cart {self.id} | {self.user} | {self.status.upper()}"

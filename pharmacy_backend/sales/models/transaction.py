# sales/models/transaction.py

import uuid
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models, transaction as db_transaction
from django.db.models import Q, Sum
from django.utils import timezone

from payments.models import StoredPaymentMethod
from sales.services.exceptions import (
    RefundNotAllowedError,
    TransactionNotEditableError,
    ValidationError,
)
from store.models import Store

from .delivery_address import DeliveryAddress

User = settings.AUTH_USER_MODEL

TWOPLACES = Decimal("0.01")


def _money(x) -> Decimal:
    return Decimal(str(x or "0")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


class TransactionManager(models.Manager):
    @db_transaction.atomic
    def create_with_items(self, *, items, **fields):
        """
        Create a transaction together with its line items.

        `items` are TransactionItem instances or dicts of TransactionItem field
        values. Financials are computed from the staged lines before the
        transaction row is written; the lines are written right after it, in
        the same DB transaction.
        """
        from .transaction_item import TransactionItem

        txn = self.model(**fields)
        lines = [TransactionItem(**v) if isinstance(v, dict) else v for v in items]
        for line in lines:
            line.compute_total()

        txn._staged_items = lines
        txn._accepting_items = True
        try:
            txn.save()
            for line in lines:
                line.transaction = txn
                line.save()
        finally:
            txn._staged_items = None
            txn._accepting_items = False
        return txn


class Transaction(models.Model):
    """
    The financial record of a sale / purchase / return / adjustment / transfer.

    GUARANTEES (enforced on every save):
    - subtotal = sum(items.total_price)
    - total_amount = max(0, subtotal + tax - discount + delivery_fee)
    - payment_amount == total_amount
    - profit = sum((unit_price - cost_price) * quantity); margin = profit / subtotal * 100
    - total_refunded <= total_amount
    - transaction_id / transaction_number / transaction_ref are assigned once,
      on first save, and never change afterwards

    Once completed, items and financial fields are frozen; only refunds
    (partially_refunded / refunded) and delivery progress move it forward.
    """

    # ---------------- transaction type ----------------
    TYPE_SALE = "sale"
    TYPE_PURCHASE = "purchase"
    TYPE_RETURN = "return"
    TYPE_ADJUSTMENT = "adjustment"
    TYPE_TRANSFER = "transfer"

    TRANSACTION_TYPE_CHOICES = [
        (TYPE_SALE, "Sale"),
        (TYPE_PURCHASE, "Purchase"),
        (TYPE_RETURN, "Return"),
        (TYPE_ADJUSTMENT, "Adjustment"),
        (TYPE_TRANSFER, "Transfer"),
    ]

    # ---------------- sale type ----------------
    SALE_TYPE_CHOICES = [
        ("full", "Full sale"),
        ("per_medicine", "Per-medicine sale"),
        ("quick", "Quick checkout"),
        ("checkout", "Cart checkout"),
    ]

    # ---------------- status ----------------
    STATUS_DRAFT = "draft"
    STATUS_PENDING = "pending"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"
    STATUS_REFUNDED = "refunded"
    STATUS_PARTIALLY_REFUNDED = "partially_refunded"
    STATUS_ON_HOLD = "on_hold"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PENDING, "Pending"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_REFUNDED, "Refunded"),
        (STATUS_PARTIALLY_REFUNDED, "Partially refunded"),
        (STATUS_ON_HOLD, "On hold"),
    ]

    EDITABLE_STATUSES = (STATUS_DRAFT, STATUS_PENDING, STATUS_ON_HOLD)
    FINANCIALLY_LOCKED_STATUSES = (
        STATUS_COMPLETED,
        STATUS_REFUNDED,
        STATUS_PARTIALLY_REFUNDED,
    )

    # ---------------- payment ----------------
    PAYMENT_CASH = "cash"
    PAYMENT_CARD = "card"
    PAYMENT_BANK_TRANSFER = "bank_transfer"
    PAYMENT_DIGITAL_WALLET = "digital_wallet"

    PAYMENT_METHOD_CHOICES = [
        (PAYMENT_CASH, "Cash"),
        (PAYMENT_CARD, "Card"),
        (PAYMENT_BANK_TRANSFER, "Bank transfer"),
        (PAYMENT_DIGITAL_WALLET, "Digital wallet"),
    ]

    PAYMENT_PENDING = "pending"
    PAYMENT_COMPLETED = "completed"
    PAYMENT_FAILED = "failed"
    PAYMENT_REFUNDED = "refunded"
    PAYMENT_PARTIALLY_REFUNDED = "partially_refunded"
    PAYMENT_AUTHORIZED = "authorized"

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_COMPLETED, "Completed"),
        (PAYMENT_FAILED, "Failed"),
        (PAYMENT_REFUNDED, "Refunded"),
        (PAYMENT_PARTIALLY_REFUNDED, "Partially refunded"),
        (PAYMENT_AUTHORIZED, "Authorized"),
    ]

    # ---------------- delivery ----------------
    DELIVERY_OPTION_CHOICES = [
        ("pickup", "Pickup"),
        ("delivery", "Delivery"),
        ("shipping", "Shipping"),
    ]

    DELIVERY_NOT_APPLICABLE = "not_applicable"
    DELIVERY_PENDING = "pending"
    DELIVERY_CONFIRMED = "confirmed"
    DELIVERY_PREPARING = "preparing"
    DELIVERY_OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERY_DELIVERED = "delivered"
    DELIVERY_CANCELLED = "cancelled"
    DELIVERY_FAILED = "failed"

    DELIVERY_STATUS_CHOICES = [
        (DELIVERY_NOT_APPLICABLE, "Not applicable"),
        (DELIVERY_PENDING, "Pending"),
        (DELIVERY_CONFIRMED, "Confirmed"),
        (DELIVERY_PREPARING, "Preparing"),
        (DELIVERY_OUT_FOR_DELIVERY, "Out for delivery"),
        (DELIVERY_DELIVERED, "Delivered"),
        (DELIVERY_CANCELLED, "Cancelled"),
        (DELIVERY_FAILED, "Failed"),
    ]

    # =========================================================
    # FIELDS
    # =========================================================
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    owner = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name="pharmacy_transactions",
        help_text="Pharmacy account the transaction belongs to.",
    )
    branch = models.ForeignKey(
        Store,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )

    transaction_type = models.CharField(
        max_length=20, choices=TRANSACTION_TYPE_CHOICES, default=TYPE_SALE
    )
    sale_type = models.CharField(max_length=20, choices=SALE_TYPE_CHOICES, blank=True)

    transaction_id = models.CharField(max_length=40, unique=True, editable=False)
    transaction_number = models.CharField(max_length=20, unique=True, editable=False)
    transaction_ref = models.CharField(max_length=40, unique=True, editable=False)

    description = models.CharField(max_length=500, blank=True)
    notes = models.TextField(blank=True)

    # ---------------- financials ----------------
    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax_rate = models.DecimalField(max_digits=6, decimal_places=4, default=Decimal("0.0000"))
    tax = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    delivery_fee = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    profit = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    margin_percentage = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal("0.00"))

    # ---------------- customer ----------------
    customer_name = models.CharField(max_length=100, blank=True)
    customer_phone = models.CharField(max_length=30, blank=True)
    customer_email = models.EmailField(blank=True)

    # ---------------- payment record ----------------
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, blank=True)
    payment_method_ref = models.ForeignKey(
        StoredPaymentMethod,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    payment_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    payment_status = models.CharField(
        max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING
    )
    payment_details = models.JSONField(
        default=dict,
        blank=True,
        help_text="Method-specific, masked payment data (authorization code, bank reference, ...).",
    )
    paid_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)

    # ---------------- lifecycle ----------------
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    transaction_date = models.DateTimeField(default=timezone.now)

    # ---------------- delivery ----------------
    delivery_option = models.CharField(max_length=20, choices=DELIVERY_OPTION_CHOICES, default="pickup")
    delivery_status = models.CharField(
        max_length=20, choices=DELIVERY_STATUS_CHOICES, default=DELIVERY_NOT_APPLICABLE
    )
    delivery_address = models.ForeignKey(
        DeliveryAddress,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    estimated_delivery = models.DateTimeField(null=True, blank=True)
    actual_delivery = models.DateTimeField(null=True, blank=True)
    delivery_notes = models.CharField(max_length=500, blank=True)

    # ---------------- audit ----------------
    is_prescription = models.BooleanField(default=False)

    created_by = models.ForeignKey(
        User, on_delete=models.PROTECT, related_name="transactions_created"
    )
    updated_by = models.ForeignKey(
        User, on_delete=models.PROTECT, null=True, blank=True, related_name="transactions_updated"
    )
    cancelled_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="transactions_cancelled"
    )
    cancellation_reason = models.CharField(max_length=500, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TransactionManager()

    class Meta:
        ordering = ["-transaction_date"]
        indexes = [
            models.Index(fields=["owner", "-transaction_date"], name="txn_owner_date_idx"),
            models.Index(fields=["owner", "status", "-transaction_date"], name="txn_owner_status_date_idx"),
            models.Index(fields=["owner", "transaction_type", "-created_at"], name="txn_owner_type_created_idx"),
            models.Index(fields=["payment_status", "-transaction_date"], name="txn_payment_status_date_idx"),
            models.Index(fields=["delivery_status", "estimated_delivery"], name="txn_delivery_status_eta_idx"),
            models.Index(fields=["customer_phone", "-transaction_date"], name="txn_customer_phone_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_amount__gte=0),
                name="transaction_total_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(payment_amount__lte=models.F("total_amount")),
                name="transaction_payment_within_total",
            ),
        ]

    _IMMUTABLE_FIELDS_AFTER_COMPLETION = (
        "owner_id",
        "transaction_type",
        "subtotal",
        "tax_rate",
        "tax",
        "discount",
        "delivery_fee",
        "total_amount",
        "payment_method",
        "created_by_id",
    )

    _LOCKED_STATUS_MOVES = {
        STATUS_COMPLETED: {STATUS_COMPLETED, STATUS_PARTIALLY_REFUNDED, STATUS_REFUNDED},
        STATUS_PARTIALLY_REFUNDED: {STATUS_PARTIALLY_REFUNDED, STATUS_REFUNDED},
        STATUS_REFUNDED: {STATUS_REFUNDED},
    }

    _staged_items = None
    _accepting_items = False

    # =========================================================
    # DERIVED (read-only)
    # =========================================================
    @property
    def total_refunded(self) -> Decimal:
        if self._state.adding:
            return Decimal("0.00")
        total = self.refunds.aggregate(total=Sum("amount")).get("total")
        return _money(total)

    @property
    def amount_due(self) -> Decimal:
        return _money(max(Decimal("0"), _money(self.total_amount) - _money(self.payment_amount)))

    @property
    def is_paid(self) -> bool:
        return (
            self.payment_status == self.PAYMENT_COMPLETED
            and _money(self.payment_amount) >= _money(self.total_amount)
        )

    @property
    def age_in_days(self) -> int:
        return (timezone.now() - self.transaction_date).days

    @property
    def is_editable(self) -> bool:
        return self.status in self.EDITABLE_STATUSES

    def _line_items(self) -> list:
        if self._staged_items is not None:
            return list(self._staged_items)
        if self._state.adding:
            return []
        return list(self.items.all())

    # =========================================================
    # SAVE PIPELINE
    # =========================================================
    def assign_identifiers(self) -> None:
        """Assign transaction_id / transaction_number / transaction_ref, only if unset."""
        from sales.services.identifiers import (
            format_transaction_number,
            generate_unique_id,
            next_sequence,
        )

        if not self.transaction_id:
            self.transaction_id = generate_unique_id("TXN", field="transaction_id")
        if not self.transaction_number:
            seq = next_sequence(f"{self.transaction_type}_number")
            self.transaction_number = format_transaction_number(self.transaction_type, seq)
        if not self.transaction_ref:
            self.transaction_ref = generate_unique_id("REF", field="transaction_ref")

    def recompute_financials(self, lines=None) -> None:
        lines = self._line_items() if lines is None else lines
        for line in lines:
            # Stored rows are checked, not repaired; staged rows get their total here.
            if line._state.adding:
                line.compute_total()
            else:
                line.assert_consistent()

        self.subtotal = _money(sum((_money(l.total_price) for l in lines), Decimal("0.00")))
        self.tax = _money(self.tax)
        self.discount = _money(self.discount)
        self.delivery_fee = _money(self.delivery_fee)

        total = self.subtotal + self.tax - self.discount + self.delivery_fee
        self.total_amount = _money(max(total, Decimal("0.00")))
        self.payment_amount = self.total_amount

    def calculate_profit(self, lines=None) -> None:
        lines = self._line_items() if lines is None else lines
        profit = sum(
            (
                (_money(l.unit_price) - _money(l.cost_price)) * int(l.quantity)
                for l in lines
            ),
            Decimal("0.00"),
        )
        self.profit = _money(profit)
        if self.subtotal > 0:
            self.margin_percentage = _money(self.profit / self.subtotal * Decimal("100"))
        else:
            self.margin_percentage = Decimal("0.00")

    def apply_auto_status(self, now=None) -> None:
        """
        Derived status from the payment record. Idempotent.

        - payment completed + status pending  -> completed (stamps paid_at)
        - payment failed -> pending (stamps failed_at), unless the transaction
          is cancelled or already completed / refunded
        """
        now = now or timezone.now()

        if self.payment_status == self.PAYMENT_COMPLETED and self.status == self.STATUS_PENDING:
            self.status = self.STATUS_COMPLETED
            self.paid_at = self.paid_at or now

        if (
            self.payment_status == self.PAYMENT_FAILED
            and self.status != self.STATUS_CANCELLED
            and self.status not in self.FINANCIALLY_LOCKED_STATUSES
        ):
            self.status = self.STATUS_PENDING
            self.failed_at = self.failed_at or now

    def validate(self, lines=None) -> None:
        """Cross-field invariants, checked before every write."""
        lines = self._line_items() if lines is None else lines

        if not lines:
            raise ValidationError("Transaction must contain at least one item")

        for line in lines:
            if self._staged_items is not None:
                try:
                    line.clean()
                except DjangoValidationError as exc:
                    raise ValidationError("; ".join(exc.messages))
            line.assert_consistent()

        for name in ("tax", "discount", "delivery_fee"):
            if _money(getattr(self, name)) < 0:
                raise ValidationError(f"{name} cannot be negative")

        if not Decimal("0") <= Decimal(str(self.tax_rate or 0)) <= Decimal("1"):
            raise ValidationError("tax_rate must be between 0 and 1")

        if _money(self.payment_amount) > _money(self.total_amount):
            raise ValidationError("Payment amount cannot exceed the transaction total")

        if self.total_refunded > _money(self.total_amount):
            raise ValidationError("Refunded amount cannot exceed the transaction total")

        valid = {
            "transaction_type": self.TRANSACTION_TYPE_CHOICES,
            "status": self.STATUS_CHOICES,
            "payment_status": self.PAYMENT_STATUS_CHOICES,
            "delivery_option": self.DELIVERY_OPTION_CHOICES,
            "delivery_status": self.DELIVERY_STATUS_CHOICES,
        }
        for name, choices in valid.items():
            if getattr(self, name) not in dict(choices):
                raise ValidationError(f"Invalid {name}: {getattr(self, name)}")
        if self.payment_method and self.payment_method not in dict(self.PAYMENT_METHOD_CHOICES):
            raise ValidationError(f"Invalid payment_method: {self.payment_method}")

    def _validate_immutable(self, previous: "Transaction") -> None:
        for name in ("transaction_id", "transaction_number", "transaction_ref"):
            if getattr(previous, name) and getattr(self, name) != getattr(previous, name):
                raise TransactionNotEditableError(f"{name} cannot be changed once assigned")

        if previous.status not in self.FINANCIALLY_LOCKED_STATUSES:
            return

        if self.status not in self._LOCKED_STATUS_MOVES[previous.status]:
            raise TransactionNotEditableError(
                f"Transaction is immutable once {previous.status}. "
                f"Status change {previous.status} -> {self.status} is not allowed."
            )

        for name in self._IMMUTABLE_FIELDS_AFTER_COMPLETION:
            if getattr(self, name) != getattr(previous, name):
                raise TransactionNotEditableError(
                    f"Transaction is immutable once {previous.status}. "
                    f"Field '{name}' cannot be changed."
                )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            previous = Transaction.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._validate_immutable(previous)

        lines = self._line_items()
        self.assign_identifiers()
        self.recompute_financials(lines)
        self.calculate_profit(lines)
        self.apply_auto_status()
        if self.updated_by_id is None:
            self.updated_by_id = self.created_by_id
        self.validate(lines)

        super().save(*args, **kwargs)

    # =========================================================
    # REFUNDS
    # =========================================================
    def can_refund(self, now=None) -> bool:
        now = now or timezone.now()
        window = int(getattr(settings, "POS", {}).get("REFUND_WINDOW_DAYS", 90))
        return (
            self.status in (self.STATUS_COMPLETED, self.STATUS_PARTIALLY_REFUNDED)
            and self.total_refunded < _money(self.total_amount)
            and self.transaction_date > now - timedelta(days=window)
        )

    def process_refund(self, *, amount, processed_by, reason="", payment_method=None, notes="") -> Decimal:
        """
        Append a refund capped at the remaining balance and update status.
        Returns the amount actually refunded.
        """
        from .transaction_refund import TransactionRefund

        if not self.can_refund():
            raise RefundNotAllowedError("Transaction cannot be refunded")

        requested = _money(amount)
        if requested <= 0:
            raise ValidationError("Refund amount must be greater than zero")

        method = payment_method or self.payment_method or self.PAYMENT_CASH
        if method not in dict(TransactionRefund.REFUND_METHOD_CHOICES):
            raise ValidationError(f"Invalid refund payment method: {method}")

        remaining = _money(self.total_amount) - self.total_refunded
        refund_amount = min(requested, remaining)

        TransactionRefund.objects.create(
            transaction=self,
            amount=refund_amount,
            reason=(reason or "").strip(),
            payment_method=method,
            processed_by=processed_by,
            notes=(notes or "").strip(),
        )

        self.update_refund_status()
        self.updated_by = processed_by
        self.save()
        return refund_amount

    def update_refund_status(self, now=None) -> None:
        refunded = self.total_refunded
        if refunded >= _money(self.total_amount):
            self.status = self.STATUS_REFUNDED
            self.payment_status = self.PAYMENT_REFUNDED
            self.refunded_at = now or timezone.now()
        elif refunded > 0:
            self.status = self.STATUS_PARTIALLY_REFUNDED
            self.payment_status = self.PAYMENT_PARTIALLY_REFUNDED

    # =========================================================
    # DELIVERY
    # =========================================================
    def validate_delivery_transition(self, new_status: str) -> bool:
        from sales.services.transaction_lifecycle import can_transition_delivery

        return can_transition_delivery(from_status=self.delivery_status, to_status=new_status)

    def __str__(self):
        return f"{self.transaction_number or self.transaction_id} | {self.status} | {self.total_amount}"

# payments/models/payment_method.py

"""
STORED PAYMENT METHOD

Saved instruments of a pharmacy account (card on file, bank account, wallet).

Secrets:
- Card / account numbers are stored ONLY encrypted (payments.services.vault)
  plus their last four digits.
- CVV is stored ONLY as a one-way hash.
- The checkout engine never reads this model directly; it receives
  display_fields(), which carries masked values only.

Rules:
- At most one default method per owner (partial unique constraint).
- Deleting a method is a soft delete (is_active = False).
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

User = settings.AUTH_USER_MODEL


class StoredPaymentMethod(models.Model):
    TYPE_CASH = "cash"
    TYPE_CARD = "card"
    TYPE_BANK_TRANSFER = "bank_transfer"
    TYPE_DIGITAL_WALLET = "digital_wallet"

    TYPE_CHOICES = (
        (TYPE_CASH, "Cash"),
        (TYPE_CARD, "Card"),
        (TYPE_BANK_TRANSFER, "Bank transfer"),
        (TYPE_DIGITAL_WALLET, "Digital wallet"),
    )

    CARD_BRAND_CHOICES = (
        ("visa", "Visa"),
        ("mastercard", "Mastercard"),
        ("amex", "American Express"),
        ("discover", "Discover"),
        ("other", "Other"),
    )

    WALLET_PROVIDER_CHOICES = (
        ("vodafone_cash", "Vodafone Cash"),
        ("orange_money", "Orange Money"),
        ("etisalat_cash", "Etisalat Cash"),
        ("other", "Other"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="payment_methods",
    )

    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    name = models.CharField(max_length=100)

    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    # ---------------- card ----------------
    card_last_four = models.CharField(max_length=4, blank=True)
    card_brand = models.CharField(max_length=20, choices=CARD_BRAND_CHOICES, blank=True)
    cardholder_name = models.CharField(max_length=100, blank=True)
    card_expiry = models.CharField(max_length=7, blank=True, help_text="MM/YY")
    encrypted_card_number = models.TextField(blank=True, editable=False)
    hashed_cvv = models.CharField(max_length=255, blank=True, editable=False)

    # ---------------- bank ----------------
    bank_name = models.CharField(max_length=100, blank=True)
    account_last_four = models.CharField(max_length=4, blank=True)
    encrypted_account_number = models.TextField(blank=True, editable=False)
    routing_number = models.CharField(max_length=34, blank=True)
    iban = models.CharField(max_length=34, blank=True)

    # ---------------- wallet ----------------
    wallet_provider = models.CharField(max_length=20, choices=WALLET_PROVIDER_CHOICES, blank=True)
    phone_number = models.CharField(max_length=30, blank=True)
    wallet_id = models.CharField(max_length=100, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-is_default", "-created_at"]
        indexes = [
            models.Index(fields=["owner", "is_active"], name="paymethod_owner_active_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["owner"],
                condition=Q(is_default=True),
                name="one_default_payment_method_per_owner",
            )
        ]

    REQUIRED_BY_TYPE = {
        TYPE_CARD: (
            "encrypted_card_number",
            "card_last_four",
            "cardholder_name",
            "card_expiry",
            "hashed_cvv",
        ),
        TYPE_BANK_TRANSFER: (
            "encrypted_account_number",
            "account_last_four",
            "bank_name",
            "routing_number",
        ),
        TYPE_DIGITAL_WALLET: (
            "wallet_provider",
            "phone_number",
            "wallet_id",
        ),
    }

    def clean(self):
        missing = [f for f in self.REQUIRED_BY_TYPE.get(self.type, ()) if not getattr(self, f)]
        if missing:
            raise ValidationError({f: f"Required for {self.type} payment methods" for f in missing})

        for field in ("card_last_four", "account_last_four"):
            value = getattr(self, field)
            if value and (len(value) != 4 or not value.isdigit()):
                raise ValidationError({field: "Must be exactly four digits"})

    def save(self, *args, **kwargs):
        self.full_clean(validate_constraints=False)
        return super().save(*args, **kwargs)

    @property
    def display_card_number(self):
        if self.type != self.TYPE_CARD or not self.card_last_four:
            return None
        return f"**** **** **** {self.card_last_four}"

    def display_fields(self) -> dict:
        """Masked, secret-free view consumed by checkout and the API."""
        data = {
            "id": str(self.id),
            "type": self.type,
            "name": self.name,
            "is_default": self.is_default,
        }
        if self.type == self.TYPE_CARD:
            data.update(
                {
                    "card_last_four": self.card_last_four,
                    "card_brand": self.card_brand,
                    "cardholder_name": self.cardholder_name,
                    "card_expiry": self.card_expiry,
                    "display_card_number": self.display_card_number,
                }
            )
        elif self.type == self.TYPE_BANK_TRANSFER:
            data.update(
                {
                    "bank_name": self.bank_name,
                    "account_last_four": self.account_last_four,
                }
            )
        elif self.type == self.TYPE_DIGITAL_WALLET:
            data.update(
                {
                    "wallet_provider": self.wallet_provider,
                    "phone_number": self.phone_number,
                    "wallet_id": self.wallet_id,
                }
            )
        return data

    def __str__(self):
        return f"{self.name} ({self.type})"

# sales/services/pricing.py

"""
======================================================
PATH: sales/services/pricing.py
======================================================
CHECKOUT PRICING

Server-side totals for a set of priced lines:

  subtotal     = sum(quantity * unit_price)
  delivery_fee = POS["DELIVERY_BASE_FEE"] when delivery_option == "delivery"
  tax          = subtotal * tax_rate   (POS["DEFAULT_TAX_RATE"] when unspecified)
  total        = max(0, subtotal + tax + delivery_fee - discount)

An unresolvable delivery address is a soft failure: totals are still
computed and the address is left unset.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError

from sales.models import DeliveryAddress, Transaction
from sales.services.exceptions import AddressNotFoundError, ValidationError

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

DELIVERY = "delivery"


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _pos_setting(key: str, default) -> Decimal:
    return Decimal(str(getattr(settings, "POS", {}).get(key, default)))


def default_tax_rate() -> Decimal:
    return _pos_setting("DEFAULT_TAX_RATE", "0.08")


def delivery_base_fee() -> Decimal:
    return _money(_pos_setting("DELIVERY_BASE_FEE", "5.00"))


def _rate(value) -> Decimal:
    if value is None or value == "":
        return default_tax_rate()
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("tax_rate must be a number")
    if not Decimal("0") <= rate <= Decimal("1"):
        raise ValidationError("tax_rate must be between 0 and 1")
    return rate


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax_rate: Decimal
    tax: Decimal
    discount: Decimal
    delivery_fee: Decimal
    total: Decimal
    delivery_address: DeliveryAddress | None = None

    def as_dict(self) -> dict:
        return {
            "subtotal": str(self.subtotal),
            "tax_rate": str(self.tax_rate),
            "tax": str(self.tax),
            "discount": str(self.discount),
            "delivery_fee": str(self.delivery_fee),
            "total_amount": str(self.total),
        }


def find_address(ref, owner=None) -> DeliveryAddress:
    qs = DeliveryAddress.objects.filter(is_active=True)
    if owner is not None:
        qs = qs.filter(owner=owner)
    try:
        return qs.get(pk=ref)
    except (DeliveryAddress.DoesNotExist, DjangoValidationError, ValueError, TypeError):
        raise AddressNotFoundError(f"Delivery address {ref} not found")


def _line_value(line, name):
    if isinstance(line, dict):
        return line.get(name)
    return getattr(line, name)


def calculate_totals(
    items,
    delivery_option: str = "pickup",
    address_ref=None,
    tax_rate=None,
    discount=None,
    *,
    owner=None,
) -> Totals:
    """
    `items` are line objects or dicts carrying `quantity` and `unit_price`.
    """
    if delivery_option not in dict(Transaction.DELIVERY_OPTION_CHOICES):
        raise ValidationError(f"Invalid delivery option: {delivery_option}")

    subtotal = _money(
        sum(
            (
                _money(_line_value(l, "unit_price")) * int(_line_value(l, "quantity") or 0)
                for l in items
            ),
            Decimal("0.00"),
        )
    )

    rate = _rate(tax_rate)

    try:
        discount = _money(discount)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("discount must be a number")
    if discount < 0:
        raise ValidationError("Discount cannot be negative")

    delivery_fee = Decimal("0.00")
    address = None
    if delivery_option == DELIVERY:
        delivery_fee = delivery_base_fee()
        if address_ref:
            try:
                address = find_address(address_ref, owner=owner)
            except AddressNotFoundError:
                logger.warning(
                    "Delivery address not resolved; continuing without it",
                    extra={"address_ref": str(address_ref)},
                )

    tax = _money(subtotal * rate)
    total = _money(max(subtotal + tax + delivery_fee - discount, Decimal("0.00")))

    return Totals(
        subtotal=subtotal,
        tax_rate=rate,
        tax=tax,
        discount=discount,
        delivery_fee=delivery_fee,
        total=total,
        delivery_address=address,
    )

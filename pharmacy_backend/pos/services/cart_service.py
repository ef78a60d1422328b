# pos/services/cart_service.py

"""
======================================================
PATH: pos/services/cart_service.py
======================================================
CART SERVICE

Every mutation is one transaction.atomic read-modify-write:
  lock the cart row (select_for_update) -> change lines/fields
  -> cart.recompute_totals() -> cart.save()

Rules:
- Only ACTIVE carts can be modified (CartNotActiveError otherwise).
- Re-adding a medicine merges into the existing line.
- Totals are never taken from the caller.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from pos.models import Cart, CartItem
from products.services.inventory import find_product, to_int_qty
from sales.services.exceptions import (
    CartNotActiveError,
    InvalidQuantityError,
    ItemNotFoundError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# ============================================================
# HELPERS
# ============================================================

def _decimal(value, field: str) -> Decimal:
    try:
        return Decimal(str(value if value not in (None, "") else "0"))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field} must be a number")


def _lock(cart_id) -> Cart:
    try:
        return Cart.objects.select_for_update().get(pk=cart_id)
    except (Cart.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Cart not found")


def _lock_active(cart_id) -> Cart:
    cart = _lock(cart_id)
    if cart.status != Cart.STATUS_ACTIVE:
        raise CartNotActiveError()
    return cart


def _persist(cart: Cart) -> Cart:
    cart.recompute_totals()
    cart.save()
    return cart


# ============================================================
# LOOKUP
# ============================================================

@transaction.atomic
def get_active_cart(*, user, owner=None, transaction_type: str = Cart.TYPE_SALE) -> Cart:
    """
    Canonical active cart resolver: one active cart per user and transaction type.

    An active cart that has passed its expiry is abandoned and replaced.
    """
    owner = owner or user.pharmacy_account
    if transaction_type not in dict(Cart.TRANSACTION_TYPE_CHOICES):
        raise ValidationError(f"Invalid transaction type: {transaction_type}")

    cart = (
        Cart.objects.select_for_update()
        .filter(user=user, status=Cart.STATUS_ACTIVE, transaction_type=transaction_type)
        .first()
    )

    if cart is not None and cart.is_expired():
        cart.status = Cart.STATUS_ABANDONED
        cart.save(update_fields=["status", "updated_at"])
        logger.info("Expired cart abandoned", extra={"cart_id": str(cart.pk)})
        cart = None

    if cart is None:
        cart = Cart(owner=owner, user=user, transaction_type=transaction_type)
        _persist(cart)

    return cart


def is_expired(cart: Cart) -> bool:
    return cart.is_expired()


# ============================================================
# LINE MUTATIONS
# ============================================================

@transaction.atomic
def add_item(cart_id, *, medicine_id, quantity, unit_price=None, **overrides) -> Cart:
    """
    Add a medicine line, or merge into the existing line for the same medicine.
    Catalog snapshot fields come from the medicine row.
    """
    cart = _lock_active(cart_id)
    qty = to_int_qty(quantity)
    if qty < 1:
        raise InvalidQuantityError("Quantity must be at least 1")

    medicine = find_product(medicine_id, owner=cart.owner)

    line = cart.items.select_for_update().filter(medicine=medicine).first()
    if line is not None:
        line.quantity = int(line.quantity) + qty
        line.save()
    else:
        values = CartItem.values_from_medicine(
            medicine, quantity=qty, unit_price=unit_price, **overrides
        )
        CartItem.objects.create(cart=cart, **values)

    return _persist(cart)


@transaction.atomic
def remove_item(cart_id, item_id) -> Cart:
    cart = _lock_active(cart_id)

    try:
        deleted, _ = cart.items.filter(pk=item_id).delete()
    except (DjangoValidationError, ValueError):
        deleted = 0
    if not deleted:
        raise ItemNotFoundError()

    return _persist(cart)


@transaction.atomic
def update_item_quantity(cart_id, item_id, quantity) -> Cart:
    cart = _lock_active(cart_id)

    qty = to_int_qty(quantity)
    if qty < 1:
        raise InvalidQuantityError("Quantity must be at least 1")

    try:
        line = cart.items.select_for_update().get(pk=item_id)
    except (CartItem.DoesNotExist, DjangoValidationError, ValueError):
        raise ItemNotFoundError()

    line.quantity = qty
    line.save()
    return _persist(cart)


@transaction.atomic
def clear_cart(cart_id) -> Cart:
    """
    Empty an active cart and close it (status -> completed).
    Used after a successful checkout. Abandoned or cancelled carts stay as they are.
    """
    cart = _lock_active(cart_id)
    cart.items.all().delete()
    cart.status = Cart.STATUS_COMPLETED
    return _persist(cart)


# ============================================================
# CART-LEVEL FIELDS
# ============================================================

@transaction.atomic
def apply_discount(cart_id, amount, discount_type: str = Cart.DISCOUNT_FIXED, reason: str = "") -> Cart:
    cart = _lock_active(cart_id)

    amount = _decimal(amount, "discount amount")
    if discount_type not in (Cart.DISCOUNT_FIXED, Cart.DISCOUNT_PERCENTAGE):
        raise ValidationError("discount type must be 'fixed' or 'percentage'")
    if amount < 0:
        raise ValidationError("Discount cannot be negative")
    if discount_type == Cart.DISCOUNT_PERCENTAGE and amount > 100:
        raise ValidationError("Percentage discount cannot exceed 100")

    cart.discount_amount = amount
    cart.discount_type = discount_type
    cart.discount_reason = (reason or "").strip()
    return _persist(cart)


@transaction.atomic
def set_tax(cart_id, amount) -> Cart:
    cart = _lock_active(cart_id)

    amount = _decimal(amount, "tax amount")
    if amount < 0:
        raise ValidationError("Tax cannot be negative")

    cart.tax_amount = amount
    return _persist(cart)


@transaction.atomic
def update_details(cart_id, **fields) -> Cart:
    """Customer info / description / notes."""
    allowed = {"customer_name", "customer_phone", "customer_email", "description", "notes"}
    cart = _lock_active(cart_id)
    for key, value in fields.items():
        if key in allowed and value is not None:
            setattr(cart, key, str(value).strip())
    return _persist(cart)


# ============================================================
# TERMINAL TRANSITIONS
# ============================================================

@transaction.atomic
def abandon_cart(cart_id) -> Cart:
    cart = _lock_active(cart_id)
    cart.status = Cart.STATUS_ABANDONED
    return _persist(cart)


@transaction.atomic
def complete_cart(cart_id, payment_method: str | None = None) -> Cart:
    cart = _lock_active(cart_id)
    if payment_method:
        cart.payment_method = payment_method
    cart.status = Cart.STATUS_COMPLETED
    return _persist(cart)


# ============================================================
# HOUSEKEEPING
# ============================================================

def find_abandoned_carts(days: int = 1):
    """Active carts with no activity for `days` days."""
    cutoff = timezone.now() - timedelta(days=days)
    return Cart.objects.filter(status=Cart.STATUS_ACTIVE, last_activity__lt=cutoff)


def purge_expired_carts(now=None) -> int:
    """Delete carts past their expiry. Returns the number of carts removed."""
    now = now or timezone.now()
    _, per_model = Cart.objects.filter(expires_at__lt=now).delete()
    removed = per_model.get(Cart._meta.label, 0)
    if removed:
        logger.info("Expired carts purged", extra={"count": removed})
    return removed

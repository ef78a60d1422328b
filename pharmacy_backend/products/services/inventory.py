# products/services/inventory.py

"""
======================================================
PATH: products/services/inventory.py
======================================================
INVENTORY CORE SERVICES

Purpose:
- Catalog lookup for checkout (price, stock, snapshot fields).
- Signed stock adjustments (purchases, returns, manual corrections).
- Conditional sale decrement: stock only moves if enough is on hand.

Rules:
- Quantities are integer units.
- Every write is a single UPDATE with an F() expression (no read-then-write).
- A sale decrement that would push stock below zero affects no rows and is
  reported to the caller as InsufficientStockError.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F

from products.models import Medicine
from sales.services.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    ProductNotFoundError,
)

logger = logging.getLogger(__name__)


def to_int_qty(value) -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are integer units in this system.
    """
    if value is None or value == "":
        raise InvalidQuantityError("quantity is required")

    if isinstance(value, bool):
        raise InvalidQuantityError("quantity must be a whole integer unit")

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        s = value.strip()
        if s.isdigit():
            return int(s)

    raise InvalidQuantityError("quantity must be a whole integer unit")


def find_product(ref, *, owner=None, for_update: bool = False) -> Medicine:
    """
    Resolve a medicine reference. Raises ProductNotFoundError when the
    reference is malformed, unknown, inactive or owned by another pharmacy.
    """
    qs = Medicine.objects.filter(is_active=True)
    if owner is not None:
        qs = qs.filter(pharmacy=owner)
    if for_update:
        qs = qs.select_for_update()

    try:
        return qs.get(pk=ref)
    except (Medicine.DoesNotExist, DjangoValidationError, ValueError, TypeError):
        raise ProductNotFoundError(f"Medicine with ID {ref} not found")


@transaction.atomic
def adjust_quantity(ref, delta) -> int:
    """
    Signed stock adjustment (negative for sale decrement).
    Returns the stock level after the update.
    """
    delta = int(delta)
    updated = Medicine.objects.filter(pk=ref).update(quantity=F("quantity") + delta)
    if not updated:
        raise ProductNotFoundError(f"Medicine with ID {ref} not found")

    quantity = Medicine.objects.values_list("quantity", flat=True).get(pk=ref)
    logger.info(
        "Stock adjusted",
        extra={"medicine_id": str(ref), "delta": delta, "quantity": quantity},
    )
    return quantity


def decrement_if_available(ref, quantity) -> bool:
    """
    Conditional decrement: UPDATE ... SET quantity = quantity - n WHERE quantity >= n.
    Returns True if stock moved, False if there was not enough on hand.
    """
    qty = to_int_qty(quantity)
    if qty <= 0:
        raise InvalidQuantityError("quantity must be at least 1")

    updated = Medicine.objects.filter(pk=ref, quantity__gte=qty).update(
        quantity=F("quantity") - qty
    )
    return bool(updated)


@transaction.atomic
def deduct_stock_for_sale(lines) -> None:
    """
    Decrement stock for every (medicine_id, quantity, name) line.

    All-or-nothing: if any conditional decrement fails, the surrounding atomic
    block is rolled back so earlier decrements from the same sale are undone.
    """
    for medicine_id, qty, name in lines:
        if medicine_id is None:
            raise ProductNotFoundError(f"Medicine {name} not found")

        if not decrement_if_available(medicine_id, qty):
            available = (
                Medicine.objects.filter(pk=medicine_id)
                .values_list("quantity", flat=True)
                .first()
            )
            if available is None:
                raise ProductNotFoundError(f"Medicine {name} not found")

            logger.warning(
                "Conditional stock decrement failed",
                extra={"medicine_id": str(medicine_id), "requested": qty, "available": available},
            )
            raise InsufficientStockError(
                product_name=name,
                product_ref=medicine_id,
                available=available,
                requested=qty,
            )


def assert_stock_available(lines) -> None:
    """
    Pre-mutation check for a whole sale: every (medicine_id, quantity, name)
    line must resolve and have enough stock. Quantities of repeated medicines
    are summed. Nothing is written.
    """
    requested: dict = {}
    names: dict = {}
    for medicine_id, qty, name in lines:
        if medicine_id is None:
            raise ProductNotFoundError(f"Medicine {name} not found")
        key = str(medicine_id)
        requested[key] = requested.get(key, 0) + int(qty)
        names.setdefault(key, name)

    on_hand = {
        str(pk): qty
        for pk, qty in Medicine.objects.filter(
            pk__in=list(requested), is_active=True
        ).values_list("id", "quantity")
    }

    for medicine_id, qty in requested.items():
        if medicine_id not in on_hand:
            raise ProductNotFoundError(f"Medicine {names[medicine_id]} not found")
        if on_hand[medicine_id] < qty:
            raise InsufficientStockError(
                product_name=names[medicine_id],
                product_ref=medicine_id,
                available=on_hand[medicine_id],
                requested=qty,
            )

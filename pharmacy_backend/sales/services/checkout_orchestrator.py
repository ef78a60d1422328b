# sales/services/checkout_orchestrator.py

"""
CHECKOUT ORCHESTRATOR (APPLICATION SERVICE)

Purpose:
- Turn a set of priced lines into a persisted Transaction (draft or completed).
- Validate stock, dispatch payment, persist, then decrement stock.

Item sources (first match wins):
- explicit `items` list (quick checkout / per-medicine sale)
- an existing draft / pending transaction (`transaction_pk`)
- the caller's active Cart, else the caller's pending Transaction

Hard rules:
- Quantities are integer units.
- Money values are computed server-side; callers never supply totals.
- All stock checks happen before any mutation.
- No transaction is persisted when payment fails.
- Stock decrement is conditional per line (UPDATE ... WHERE quantity >= n);
  a failed decrement rolls back the whole checkout.

Notes:
- The whole checkout runs in one DB transaction. The gateway call inside it is
  bounded by POS["PAYMENT_TIMEOUT_SECONDS"].
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from payments.services.dispatch import FAILURE_TIMEOUT, dispatch
from payments.services.methods import find_active_method
from pos.models import Cart
from pos.services.cart_service import clear_cart
from products.models import Medicine
from products.services.inventory import (
    assert_stock_available,
    deduct_stock_for_sale,
    find_product,
    to_int_qty,
)
from sales.models import Transaction, TransactionItem
from sales.services.exceptions import (
    EmptyCartError,
    InsufficientStockError,
    InvalidQuantityError,
    PaymentFailedError,
    PaymentTimeoutError,
    TransactionNotEditableError,
    ValidationError,
)
from sales.services.pricing import DELIVERY, calculate_totals
from sales.services.transaction_lifecycle import get_transaction_for_update

logger = logging.getLogger(__name__)

PAYABLE_STATUSES = (Transaction.STATUS_DRAFT, Transaction.STATUS_PENDING)


# ============================================================
# HELPERS
# ============================================================

def _explicit_lines(items, *, owner) -> list[dict]:
    """
    Build TransactionItem values from request items:
    {medicine_id, quantity, unit_price?, expiry_date?, batch_number?}
    """
    lines = []
    for raw in items:
        qty = to_int_qty(raw.get("quantity"))
        if qty < 1:
            raise InvalidQuantityError("quantity must be at least 1")

        medicine = find_product(raw.get("medicine_id") or raw.get("medicine"), owner=owner)
        lines.append(
            TransactionItem.values_from_medicine(
                medicine,
                quantity=qty,
                unit_price=raw.get("unit_price"),
                expiry_date=raw.get("expiry_date"),
                batch_number=raw.get("batch_number"),
            )
        )
    return lines


def _cart_lines(cart: Cart) -> list[dict]:
    lines = []
    for item in cart.items.select_related("medicine"):
        lines.append(
            {
                "medicine": item.medicine,
                "medicine_name": item.medicine_name,
                "generic_name": item.generic_name,
                "form": item.form,
                "pack_size": item.pack_size,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "expiry_date": item.expiry_date,
                "batch_number": item.batch_number,
                "manufacturer": item.manufacturer,
                "cost_price": item.cost_price,
            }
        )
    return lines


def _medicine_id(line):
    if isinstance(line, dict):
        medicine = line.get("medicine")
        return medicine.pk if isinstance(medicine, Medicine) else medicine
    return line.medicine_id


def _name(line):
    return line["medicine_name"] if isinstance(line, dict) else line.medicine_name


def _qty(line):
    return line["quantity"] if isinstance(line, dict) else line.quantity


def _stock_lines(lines) -> list[tuple]:
    return [(_medicine_id(l), int(_qty(l)), _name(l)) for l in lines]


def _pay(payment: dict, amount, *, owner, card_gateway=None, wallet_gateway=None) -> dict:
    """
    Dispatch a payment request {type, method_id?, extra?}.
    Returns the Transaction payment fields on success; raises on failure.
    """
    payment_type = (payment.get("type") or "").strip().lower()
    if not payment_type:
        raise ValidationError("payment type is required")

    method_id = payment.get("method_id")
    stored = find_active_method(owner, method_id) if method_id else None

    result = dispatch(
        payment_type,
        amount,
        stored,
        payment.get("extra") or {},
        card_gateway=card_gateway,
        wallet_gateway=wallet_gateway,
    )

    if not result.success:
        if result.failure_code == FAILURE_TIMEOUT:
            raise PaymentTimeoutError(result.message or "Payment gateway timed out")
        raise PaymentFailedError(result.message or "Payment failed")

    return {
        "payment_method": payment_type,
        "payment_method_ref_id": method_id or None,
        "payment_status": Transaction.PAYMENT_COMPLETED,
        "payment_details": dict(result.data),
        "paid_at": timezone.now(),
    }


def _delivery_fields(option: str, totals) -> dict:
    if option == DELIVERY:
        return {
            "delivery_option": option,
            "delivery_address": totals.delivery_address,
            "delivery_status": Transaction.DELIVERY_PENDING,
        }
    return {
        "delivery_option": option,
        "delivery_address": None,
        "delivery_status": Transaction.DELIVERY_NOT_APPLICABLE,
    }


def _decrement_after_payment(txn: Transaction, lines) -> None:
    try:
        deduct_stock_for_sale(_stock_lines(lines))
    except InsufficientStockError:
        logger.error(
            "Stock decrement failed after payment; checkout rolled back",
            extra={
                "transaction_id": txn.transaction_id,
                "payment_method": txn.payment_method,
                "payment_details": txn.payment_details,
            },
        )
        raise


def _pending_transaction(*, owner, user, transaction_type):
    return (
        Transaction.objects.select_for_update()
        .filter(
            owner=owner,
            created_by=user,
            transaction_type=transaction_type,
            status=Transaction.STATUS_PENDING,
        )
        .order_by("-created_at")
        .first()
    )


def _active_cart(*, user, transaction_type):
    return (
        Cart.objects.select_for_update()
        .filter(user=user, status=Cart.STATUS_ACTIVE, transaction_type=transaction_type)
        .first()
    )


# ============================================================
# CHECKOUT
# ============================================================

@transaction.atomic
def checkout(
    *,
    user,
    owner=None,
    transaction_type: str = Transaction.TYPE_SALE,
    items=None,
    use_cart: bool = True,
    transaction_pk=None,
    payment: dict | None = None,
    delivery: dict | None = None,
    tax_rate=None,
    discount=None,
    customer: dict | None = None,
    description: str = "",
    notes: str = "",
    save_as_draft: bool = False,
    branch=None,
    sale_type: str | None = None,
    is_prescription: bool = False,
    card_gateway=None,
    wallet_gateway=None,
) -> Transaction:
    owner = owner or user.pharmacy_account
    if transaction_type not in dict(Transaction.TRANSACTION_TYPE_CHOICES):
        raise ValidationError(f"Invalid transaction type: {transaction_type}")

    # --------------------------------------------------
    # 1. RESOLVE ITEM SET
    # --------------------------------------------------
    cart = None
    existing = None

    if items is not None:
        lines = _explicit_lines(items, owner=owner)
        sale_type = sale_type or "quick"
    elif transaction_pk is not None:
        existing = get_transaction_for_update(transaction_pk, owner=owner)
        if existing.status not in PAYABLE_STATUSES:
            raise TransactionNotEditableError(
                f"Cannot check out transaction with status: {existing.status}"
            )
        lines = list(existing.items.all())
    elif use_cart:
        cart = _active_cart(user=user, transaction_type=transaction_type)
        lines = _cart_lines(cart) if cart is not None else []
        if not lines:
            cart = None
            existing = _pending_transaction(owner=owner, user=user, transaction_type=transaction_type)
            lines = list(existing.items.all()) if existing is not None else []
        sale_type = sale_type or "checkout"
    else:
        lines = []

    # --------------------------------------------------
    # 2. EMPTY CHECK
    # --------------------------------------------------
    if not lines:
        raise EmptyCartError("Cart is empty")

    # --------------------------------------------------
    # 3. TOTALS
    # --------------------------------------------------
    delivery = delivery or {}
    delivery_option = delivery.get("option") or (existing.delivery_option if existing else "pickup")
    if discount is None:
        if cart is not None:
            discount = cart.discount_value
        elif existing is not None:
            discount = existing.discount
        else:
            discount = 0

    address_ref = delivery.get("address_id")
    if not address_ref and existing is not None:
        address_ref = existing.delivery_address_id

    totals = calculate_totals(
        lines,
        delivery_option,
        address_ref,
        tax_rate,
        discount,
        owner=owner,
    )

    # --------------------------------------------------
    # 4. STOCK CHECK (no mutation)
    # --------------------------------------------------
    if not save_as_draft and transaction_type == Transaction.TYPE_SALE:
        assert_stock_available(_stock_lines(lines))

    # --------------------------------------------------
    # 5. PAYMENT
    # --------------------------------------------------
    payment_fields = {}
    if not save_as_draft:
        payment_fields = _pay(
            payment or {"type": Transaction.PAYMENT_CASH},
            totals.total,
            owner=owner,
            card_gateway=card_gateway,
            wallet_gateway=wallet_gateway,
        )

    # --------------------------------------------------
    # 6. PERSIST
    # --------------------------------------------------
    customer = customer or {}
    fields = {
        "tax_rate": totals.tax_rate,
        "tax": totals.tax,
        "discount": totals.discount,
        "delivery_fee": totals.delivery_fee,
        **_delivery_fields(delivery_option, totals),
        **payment_fields,
        "status": Transaction.STATUS_DRAFT if save_as_draft else Transaction.STATUS_PENDING,
        "transaction_date": timezone.now(),
    }
    if delivery.get("estimated_delivery"):
        fields["estimated_delivery"] = delivery["estimated_delivery"]
    if delivery.get("notes"):
        fields["delivery_notes"] = delivery["notes"]
    for key in ("name", "phone", "email"):
        value = customer.get(key) or (getattr(cart, f"customer_{key}", "") if cart else "")
        if value:
            fields[f"customer_{key}"] = value

    if existing is not None:
        for name, value in fields.items():
            setattr(existing, name, value)
        if description:
            existing.description = description
        if notes:
            existing.notes = notes
        existing.updated_by = user
        existing.save()
        txn = existing
    else:
        txn = Transaction.objects.create_with_items(
            items=lines,
            owner=owner,
            branch=branch,
            transaction_type=transaction_type,
            sale_type=sale_type or "",
            description=description or (cart.description if cart else ""),
            notes=notes,
            is_prescription=bool(is_prescription),
            created_by=user,
            **fields,
        )

    # --------------------------------------------------
    # 7. STOCK + CART
    # --------------------------------------------------
    if not save_as_draft:
        if transaction_type == Transaction.TYPE_SALE:
            _decrement_after_payment(txn, lines if existing is None else list(txn.items.all()))
        if cart is not None:
            clear_cart(cart.pk)

    logger.info(
        "Checkout completed" if not save_as_draft else "Checkout saved as draft",
        extra={
            "transaction_id": txn.transaction_id,
            "transaction_number": txn.transaction_number,
            "total_amount": str(txn.total_amount),
            "status": txn.status,
        },
    )

    # --------------------------------------------------
    # 8. RETURN
    # --------------------------------------------------
    return txn


# ============================================================
# PAY AN EXISTING TRANSACTION
# ============================================================

@transaction.atomic
def process_payment(
    transaction_pk,
    *,
    user,
    payment: dict,
    owner=None,
    card_gateway=None,
    wallet_gateway=None,
) -> Transaction:
    """
    Settle a draft / pending transaction at its stored total.
    """
    owner = owner or user.pharmacy_account
    txn = get_transaction_for_update(transaction_pk, owner=owner)

    if txn.status not in PAYABLE_STATUSES:
        raise TransactionNotEditableError(
            f"Cannot process payment for transaction with status: {txn.status}"
        )

    lines = list(txn.items.all())
    if txn.transaction_type == Transaction.TYPE_SALE:
        assert_stock_available(_stock_lines(lines))

    payment_fields = _pay(
        payment or {},
        txn.total_amount,
        owner=owner,
        card_gateway=card_gateway,
        wallet_gateway=wallet_gateway,
    )

    for name, value in payment_fields.items():
        setattr(txn, name, value)
    txn.status = Transaction.STATUS_PENDING
    txn.updated_by = user
    txn.save()

    if txn.transaction_type == Transaction.TYPE_SALE:
        _decrement_after_payment(txn, lines)

    cart = _active_cart(user=user, transaction_type=txn.transaction_type)
    if cart is not None:
        clear_cart(cart.pk)

    logger.info(
        "Payment processed",
        extra={"transaction_id": txn.transaction_id, "payment_method": txn.payment_method},
    )
    return txn


# ============================================================
# DELIVERY OPTION
# ============================================================

@transaction.atomic
def update_delivery_option(
    transaction_pk,
    *,
    user,
    delivery_option: str,
    address_ref=None,
    owner=None,
) -> Transaction:
    owner = owner or user.pharmacy_account
    txn = get_transaction_for_update(transaction_pk, owner=owner)

    if txn.status not in PAYABLE_STATUSES:
        raise TransactionNotEditableError(
            f"Delivery option cannot change on a {txn.status} transaction"
        )

    totals = calculate_totals(
        list(txn.items.all()),
        delivery_option,
        address_ref,
        txn.tax_rate,
        txn.discount,
        owner=owner,
    )

    txn.tax = totals.tax
    txn.delivery_fee = totals.delivery_fee
    txn.delivery_option = delivery_option
    if delivery_option == DELIVERY and totals.delivery_address is not None:
        txn.delivery_address = totals.delivery_address
        txn.delivery_status = Transaction.DELIVERY_PENDING
    else:
        txn.delivery_address = None
        txn.delivery_status = Transaction.DELIVERY_NOT_APPLICABLE
    txn.updated_by = user
    txn.save()
    return txn


# ============================================================
# SUMMARY (READ-ONLY)
# ============================================================

def checkout_summary(
    *,
    user,
    owner=None,
    transaction_type: str = Transaction.TYPE_SALE,
    delivery_option: str = "pickup",
    address_ref=None,
    tax_rate=None,
) -> dict:
    """
    Totals preview for the caller's pending transaction (preferred) or active cart.
    Nothing is written.
    """
    owner = owner or user.pharmacy_account

    pending = (
        Transaction.objects.filter(
            owner=owner,
            created_by=user,
            transaction_type=transaction_type,
            status=Transaction.STATUS_PENDING,
        )
        .order_by("-created_at")
        .first()
    )
    cart = Cart.objects.filter(
        user=user, status=Cart.STATUS_ACTIVE, transaction_type=transaction_type
    ).first()

    if pending is not None:
        lines = list(pending.items.all())
        discount = pending.discount
    elif cart is not None:
        lines = list(cart.items.all())
        discount = cart.discount_value
    else:
        lines = []
        discount = 0

    totals = calculate_totals(
        lines, delivery_option, address_ref, tax_rate, discount, owner=owner
    )

    return {
        "transaction_id": str(pending.pk) if pending is not None else None,
        "cart_id": str(cart.pk) if cart is not None else None,
        "summary": {
            **totals.as_dict(),
            "total_items": len(lines),
            "total_quantity": sum(int(l.quantity) for l in lines),
        },
        "delivery": {
            "option": delivery_option,
            "address": totals.delivery_address.as_text() if totals.delivery_address else None,
        },
    }

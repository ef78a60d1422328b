# sales/tests/helpers.py

"""Shared fixtures for sales tests."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from products.models import Medicine
from sales.models import Transaction, TransactionItem

User = get_user_model()


def make_staff(owner_email="owner@pharmacy.test"):
    owner = User.objects.create_user(email=owner_email, password="pass1234", role="admin")
    local, domain = owner_email.split("@")
    cashier = User.objects.create_user(
        email=f"{local}.cashier@{domain}", password="pass1234", role="cashier", pharmacy=owner
    )
    manager = User.objects.create_user(
        email=f"{local}.manager@{domain}", password="pass1234", role="manager", pharmacy=owner
    )
    return owner, cashier, manager


def make_medicine(owner, *, name, unit_price, quantity=50, cost_price=None, **extra):
    return Medicine.objects.create(
        pharmacy=owner,
        name=name,
        generic_name=extra.pop("generic_name", name),
        unit_price=Decimal(str(unit_price)),
        cost_price=Decimal(str(cost_price)) if cost_price is not None else None,
        quantity=quantity,
        expiry_date=extra.pop("expiry_date", timezone.localdate() + timedelta(days=365)),
        **extra,
    )


def make_transaction(owner, user, lines, **fields):
    """
    lines: [(medicine, quantity), ...]
    Extra fields go straight onto the Transaction (status, payment_status, tax, ...).
    """
    items = [
        TransactionItem.values_from_medicine(medicine, quantity=qty) for medicine, qty in lines
    ]
    fields.setdefault("transaction_type", Transaction.TYPE_SALE)
    return Transaction.objects.create_with_items(
        items=items,
        owner=owner,
        created_by=user,
        **fields,
    )


def make_completed(owner, user, lines, **fields):
    fields.setdefault("payment_method", Transaction.PAYMENT_CASH)
    fields.setdefault("payment_status", Transaction.PAYMENT_COMPLETED)
    return make_transaction(owner, user, lines, **fields)

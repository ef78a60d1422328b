# payments/services/methods.py

"""
======================================================
PATH: payments/services/methods.py
======================================================
STORED PAYMENT METHOD SERVICES

Rules:
- Raw card / account numbers and CVVs never reach the database; they are
  encrypted (numbers) or hashed (CVV) here, before the row is built.
- One default per owner: setting a default unsets the previous one in the
  same atomic block.
- Delete = deactivate (soft delete); a deactivated method is never a default.
- find_active_method() returns masked display fields only.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from payments.models import StoredPaymentMethod
from payments.services import vault
from sales.services.exceptions import PaymentMethodNotFoundError, ValidationError

logger = logging.getLogger(__name__)

SAFE_UPDATE_FIELDS = {
    "name",
    "cardholder_name",
    "card_expiry",
    "bank_name",
    "routing_number",
    "iban",
    "wallet_provider",
    "phone_number",
    "wallet_id",
}


# ============================================================
# LOOKUP
# ============================================================

def get_method(owner, ref, *, active_only: bool = True, for_update: bool = False) -> StoredPaymentMethod:
    qs = StoredPaymentMethod.objects.filter(owner=owner)
    if active_only:
        qs = qs.filter(is_active=True)
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=ref)
    except (StoredPaymentMethod.DoesNotExist, DjangoValidationError, ValueError, TypeError):
        raise PaymentMethodNotFoundError()


def find_active_method(owner, ref) -> dict:
    """Masked display fields of an active stored method owned by `owner`."""
    return get_method(owner, ref).display_fields()


def list_methods(owner):
    return StoredPaymentMethod.objects.filter(owner=owner, is_active=True).order_by(
        "-is_default", "-created_at"
    )


# ============================================================
# SECRETS
# ============================================================

def _apply_card_number(method: StoredPaymentMethod, card_number) -> None:
    digits = vault.digits_only(card_number)
    if not vault.luhn_valid(digits):
        raise ValidationError("Invalid card number")
    method.encrypted_card_number = vault.encrypt(digits)
    method.card_last_four = vault.last_four(digits)
    if not method.card_brand:
        method.card_brand = vault.detect_card_brand(digits)


def _apply_cvv(method: StoredPaymentMethod, cvv) -> None:
    cvv = vault.digits_only(cvv)
    if len(cvv) not in (3, 4):
        raise ValidationError("Invalid CVV")
    method.hashed_cvv = vault.hash_secret(cvv)


def _apply_account_number(method: StoredPaymentMethod, account_number) -> None:
    digits = vault.digits_only(account_number)
    if len(digits) < 4:
        raise ValidationError("Invalid account number")
    method.encrypted_account_number = vault.encrypt(digits)
    method.account_last_four = vault.last_four(digits)


def _unset_default(owner, *, exclude_pk=None) -> None:
    qs = StoredPaymentMethod.objects.filter(owner=owner, is_default=True)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    qs.update(is_default=False)


def _save(method: StoredPaymentMethod) -> StoredPaymentMethod:
    try:
        method.save()
    except DjangoValidationError as exc:
        raise ValidationError("; ".join(exc.messages))
    return method


# ============================================================
# COMMANDS
# ============================================================

@transaction.atomic
def create_method(
    owner,
    *,
    type: str,
    name: str,
    is_default: bool = False,
    card_number=None,
    cvv=None,
    account_number=None,
    **fields,
) -> StoredPaymentMethod:
    if type not in dict(StoredPaymentMethod.TYPE_CHOICES):
        raise ValidationError(f"Unsupported payment method type: {type}")

    method = StoredPaymentMethod(owner=owner, type=type, name=(name or "").strip())
    for key, value in fields.items():
        if key in SAFE_UPDATE_FIELDS | {"card_brand"} and value not in (None, ""):
            setattr(method, key, value)

    if type == StoredPaymentMethod.TYPE_CARD:
        if card_number:
            _apply_card_number(method, card_number)
        if cvv:
            _apply_cvv(method, cvv)
    elif type == StoredPaymentMethod.TYPE_BANK_TRANSFER and account_number:
        _apply_account_number(method, account_number)

    if is_default:
        _unset_default(owner)
        method.is_default = True

    _save(method)
    logger.info(
        "Payment method stored",
        extra={"payment_method_id": str(method.pk), "type": type, "owner_id": str(owner.pk)},
    )
    return method


@transaction.atomic
def update_method(owner, ref, *, is_default=None, card_number=None, cvv=None, account_number=None, **fields):
    method = get_method(owner, ref, for_update=True)

    for key, value in fields.items():
        if key in SAFE_UPDATE_FIELDS and value is not None:
            setattr(method, key, value)

    if method.type == StoredPaymentMethod.TYPE_CARD:
        if card_number:
            method.card_brand = ""
            _apply_card_number(method, card_number)
        if cvv:
            _apply_cvv(method, cvv)
    elif method.type == StoredPaymentMethod.TYPE_BANK_TRANSFER and account_number:
        _apply_account_number(method, account_number)

    if is_default and not method.is_default:
        _unset_default(owner, exclude_pk=method.pk)
        method.is_default = True
    elif is_default is False:
        method.is_default = False

    return _save(method)


@transaction.atomic
def deactivate_method(owner, ref) -> StoredPaymentMethod:
    method = get_method(owner, ref, for_update=True)
    method.is_active = False
    method.is_default = False
    method.save(update_fields=["is_active", "is_default", "updated_at"])
    return method


@transaction.atomic
def set_default(owner, ref) -> StoredPaymentMethod:
    method = get_method(owner, ref, for_update=True)
    _unset_default(owner, exclude_pk=method.pk)
    if not method.is_default:
        method.is_default = True
        method.save(update_fields=["is_default", "updated_at"])
    return method


# ============================================================
# VERIFICATION
# ============================================================

def verify_cvv(method: StoredPaymentMethod, cvv) -> bool:
    if method.type != StoredPaymentMethod.TYPE_CARD or not method.hashed_cvv:
        return False
    return vault.verify_secret(vault.digits_only(cvv), method.hashed_cvv)


def reveal_card_number(method: StoredPaymentMethod):
    """Decrypted card number; only for gateway hand-off, never for responses."""
    if method.type != StoredPaymentMethod.TYPE_CARD or not method.encrypted_card_number:
        return None
    return vault.decrypt(method.encrypted_card_number)

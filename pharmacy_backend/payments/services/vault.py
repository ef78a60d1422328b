# payments/services/vault.py

"""
======================================================
PATH: payments/services/vault.py
======================================================
PAYMENT SECRET VAULT

- encrypt / decrypt: reversible, Fernet (AES-128-CBC + HMAC) via `cryptography`.
  Key: settings.PAYMENTS["VAULT_KEY"] (urlsafe base64, 32 bytes). When unset
  (dev / test) a key is derived from SECRET_KEY.
- hash_secret / verify_secret: one-way, Django's password hashers (CVV).
- Card helpers: Luhn check, brand detection, masking.
"""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken
from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password

from sales.services.exceptions import ConsistencyError


def _vault_key() -> bytes:
    payments = getattr(settings, "PAYMENTS", {}) or {}
    key = (payments.get("VAULT_KEY") or "").strip()
    if key:
        return key.encode("ascii")
    digest = hashlib.sha256(settings.SECRET_KEY.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


def _fernet() -> Fernet:
    return Fernet(_vault_key())


def encrypt(value: str) -> str:
    return _fernet().encrypt(str(value).encode("utf-8")).decode("ascii")


def decrypt(token: str) -> str:
    try:
        return _fernet().decrypt(token.encode("ascii")).decode("utf-8")
    except (InvalidToken, ValueError):
        raise ConsistencyError("Failed to decrypt stored payment data")


def hash_secret(value: str) -> str:
    return make_password(str(value))


def verify_secret(value: str, hashed: str) -> bool:
    if not hashed:
        return False
    return check_password(str(value), hashed)


# ============================================================
# CARD HELPERS
# ============================================================

def digits_only(value) -> str:
    return "".join(ch for ch in str(value or "") if ch.isdigit())


def luhn_valid(number) -> bool:
    digits = digits_only(number)
    if not 12 <= len(digits) <= 19:
        return False

    total = 0
    for i, ch in enumerate(reversed(digits)):
        d = int(ch)
        if i % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return total % 10 == 0


def detect_card_brand(number) -> str:
    digits = digits_only(number)
    if digits.startswith("4"):
        return "visa"
    if digits[:2] in {"51", "52", "53", "54", "55"} or "2221" <= digits[:4] <= "2720":
        return "mastercard"
    if digits[:2] in {"34", "37"}:
        return "amex"
    if digits.startswith("6011") or digits.startswith("65"):
        return "discover"
    return "other"


def last_four(value) -> str:
    return digits_only(value)[-4:]


def mask_card_number(last4: str) -> str:
    return f"**** **** **** {last4}"

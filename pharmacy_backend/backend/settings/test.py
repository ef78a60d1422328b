# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS
- SQLite in-memory, fast password hashing
- Deterministic payment gateways (tests override per case)
- Throttling off
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING, PAYMENTS, POS, REST_FRAMEWORK

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

POS = {
    **POS,
    "DEFAULT_TAX_RATE": "0.08",
    "DELIVERY_BASE_FEE": "5.00",
    "PAYMENT_TIMEOUT_SECONDS": 2.0,
}

PAYMENTS = {
    **PAYMENTS,
    "CARD_GATEWAY": "payments.services.gateways.CounterTerminalCardGateway",
    "WALLET_GATEWAY": "payments.services.gateways.CounterTerminalWalletGateway",
    "VAULT_KEY": "",
}

LOGGING = {
    **LOGGING,
    "root": {"handlers": ["console"], "level": "CRITICAL"},
    "loggers": {},
}

# payments/services/gateways.py

"""
======================================================
PATH: payments/services/gateways.py
======================================================
PAYMENT GATEWAYS (capability seam)

A gateway authorizes an amount against an instrument and answers with a
GatewayResult. Which class is used is configured by dotted path:

    PAYMENTS = {
        "CARD_GATEWAY": "payments.services.gateways.CounterTerminalCardGateway",
        "WALLET_GATEWAY": "payments.services.gateways.CounterTerminalWalletGateway",
    }

The counter-terminal gateways are for pharmacies that run card / wallet
payments on a separate terminal: the cashier confirms the payment at the
counter, so they approve deterministically and only mint references.
Integrations with a real processor subclass CardGateway / WalletGateway.
"""

from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.utils.module_loading import import_string

DEFAULT_CARD_GATEWAY = "payments.services.gateways.CounterTerminalCardGateway"
DEFAULT_WALLET_GATEWAY = "payments.services.gateways.CounterTerminalWalletGateway"

_ALPHANUM = string.ascii_uppercase + string.digits


@dataclass(frozen=True)
class GatewayResult:
    approved: bool
    message: str = ""
    transaction_id: str = ""
    authorization_code: str = ""


class CardGateway:
    def authorize(self, amount: Decimal, method: dict | None, extra: dict) -> GatewayResult:
        raise NotImplementedError


class WalletGateway:
    def charge(self, amount: Decimal, method: dict | None, extra: dict) -> GatewayResult:
        raise NotImplementedError


def _ms() -> int:
    return int(time.time() * 1000)


class CounterTerminalCardGateway(CardGateway):
    def authorize(self, amount, method, extra):
        return GatewayResult(
            approved=True,
            message="Payment approved",
            transaction_id=f"CARD{_ms()}",
            authorization_code="AUTH" + "".join(secrets.choice(_ALPHANUM) for _ in range(8)),
        )


class CounterTerminalWalletGateway(WalletGateway):
    def charge(self, amount, method, extra):
        return GatewayResult(
            approved=True,
            message="Wallet payment successful",
            transaction_id=f"WALLET{_ms()}",
        )


def _configured(key: str, default: str):
    payments = getattr(settings, "PAYMENTS", {}) or {}
    path = (payments.get(key) or default).strip()
    return import_string(path)()


def get_card_gateway() -> CardGateway:
    return _configured("CARD_GATEWAY", DEFAULT_CARD_GATEWAY)


def get_wallet_gateway() -> WalletGateway:
    return _configured("WALLET_GATEWAY", DEFAULT_WALLET_GATEWAY)

# payments/services/dispatch.py

"""
======================================================
PATH: payments/services/dispatch.py
======================================================
PAYMENT DISPATCH

dispatch(type, amount, stored_method, extra) -> PaymentResult

- cash            always succeeds (cash_received = amount, change_given = 0)
- card            card gateway; masked card data + authorization code
- bank_transfer   succeeds synchronously; mints a BT... bank reference
- digital_wallet  wallet gateway; provider + phone + gateway transaction id
- anything else   UnsupportedPaymentMethodError

Gateway calls run under a timeout. A timeout is reported as
failure_code="timeout" and is never retried: gateways are not guaranteed
idempotent.

`stored_method` is the masked dict from
payments.services.methods.find_active_method(); no secret ever passes here.
"""

from __future__ import annotations

import logging
import secrets
import string
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

from payments.services import vault
from payments.services.gateways import get_card_gateway, get_wallet_gateway
from sales.services.exceptions import UnsupportedPaymentMethodError

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

CASH = "cash"
CARD = "card"
BANK_TRANSFER = "bank_transfer"
DIGITAL_WALLET = "digital_wallet"

PAYMENT_TYPES = (CASH, CARD, BANK_TRANSFER, DIGITAL_WALLET)

FAILURE_DECLINED = "declined"
FAILURE_TIMEOUT = "timeout"
FAILURE_ERROR = "gateway_error"


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    data: dict = field(default_factory=dict)
    message: str = ""
    failure_code: str | None = None


def _money(x) -> Decimal:
    return Decimal(str(x or "0")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _default_timeout() -> float:
    return float(getattr(settings, "POS", {}).get("PAYMENT_TIMEOUT_SECONDS", 30))


def _call_with_timeout(fn, *args, timeout: float):
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="payment-gateway")
    try:
        future = executor.submit(fn, *args)
        return future.result(timeout=timeout)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def _gateway_call(kind: str, fn, amount, method, extra, timeout):
    try:
        return _call_with_timeout(fn, amount, method, extra, timeout=timeout)
    except FutureTimeoutError:
        logger.warning("Payment gateway timed out", extra={"kind": kind, "timeout": timeout})
        return PaymentResult(
            success=False,
            message="Payment gateway did not respond in time",
            failure_code=FAILURE_TIMEOUT,
        )
    except Exception:
        logger.exception("Payment gateway error", extra={"kind": kind})
        return PaymentResult(
            success=False,
            message=f"{'Card' if kind == CARD else 'Digital wallet'} payment failed",
            failure_code=FAILURE_ERROR,
        )


# ============================================================
# HANDLERS
# ============================================================

def _cash(amount, method, extra, **_) -> PaymentResult:
    return PaymentResult(
        success=True,
        data={"cash_received": str(amount), "change_given": "0.00"},
        message="Cash payment recorded",
    )


def _card(amount, method, extra, *, card_gateway=None, timeout=None, **_) -> PaymentResult:
    gateway = card_gateway or get_card_gateway()
    outcome = _gateway_call(CARD, gateway.authorize, amount, method, extra, timeout)
    if isinstance(outcome, PaymentResult):
        return outcome

    last4 = (method or {}).get("card_last_four") or vault.last_four(extra.get("card_number", ""))
    if not outcome.approved:
        return PaymentResult(
            success=False,
            message=outcome.message or "Payment declined",
            failure_code=FAILURE_DECLINED,
        )

    return PaymentResult(
        success=True,
        data={
            "card_last_four": last4 or "",
            "card_brand": (method or {}).get("card_brand", ""),
            "gateway_transaction_id": outcome.transaction_id,
            "authorization_code": outcome.authorization_code,
        },
        message=outcome.message or "Payment approved",
    )


def _bank_transfer(amount, method, extra, **_) -> PaymentResult:
    rand = "".join(secrets.choice(string.ascii_lowercase + string.digits) for _ in range(9))
    reference = f"BT{int(time.time() * 1000)}{rand}".upper()

    bank_name = (method or {}).get("bank_name") or extra.get("bank_name", "")
    account_last_four = (method or {}).get("account_last_four") or vault.last_four(
        extra.get("account_number", "")
    )
    return PaymentResult(
        success=True,
        data={
            "bank_reference": reference,
            "bank_name": bank_name,
            "account_last_four": account_last_four or "",
        },
        message="Bank transfer recorded",
    )


def _digital_wallet(amount, method, extra, *, wallet_gateway=None, timeout=None, **_) -> PaymentResult:
    gateway = wallet_gateway or get_wallet_gateway()
    outcome = _gateway_call(DIGITAL_WALLET, gateway.charge, amount, method, extra, timeout)
    if isinstance(outcome, PaymentResult):
        return outcome

    if not outcome.approved:
        return PaymentResult(
            success=False,
            message=outcome.message or "Wallet transaction failed",
            failure_code=FAILURE_DECLINED,
        )

    return PaymentResult(
        success=True,
        data={
            "wallet_provider": (method or {}).get("wallet_provider") or extra.get("wallet_provider", ""),
            "phone_number": (method or {}).get("phone_number") or extra.get("phone_number", ""),
            "gateway_transaction_id": outcome.transaction_id,
        },
        message=outcome.message or "Wallet payment successful",
    )


HANDLERS = {
    CASH: _cash,
    CARD: _card,
    BANK_TRANSFER: _bank_transfer,
    DIGITAL_WALLET: _digital_wallet,
}


def dispatch(
    payment_type: str,
    amount,
    stored_method: dict | None = None,
    extra: dict | None = None,
    *,
    card_gateway=None,
    wallet_gateway=None,
    timeout: float | None = None,
) -> PaymentResult:
    handler = HANDLERS.get(payment_type)
    if handler is None:
        raise UnsupportedPaymentMethodError(f"Unsupported payment method: {payment_type}")

    amount = _money(amount)
    result = handler(
        amount,
        stored_method,
        dict(extra or {}),
        card_gateway=card_gateway,
        wallet_gateway=wallet_gateway,
        timeout=timeout if timeout is not None else _default_timeout(),
    )

    log = logger.info if result.success else logger.warning
    log(
        "Payment dispatched",
        extra={
            "payment_type": payment_type,
            "amount": str(amount),
            "success": result.success,
            "failure_code": result.failure_code,
        },
    )
    return result

# sales/services/identifiers.py

"""
======================================================
PATH: sales/services/identifiers.py
======================================================
IDENTIFIER GENERATOR

Purpose:
- Durable per-category sequence numbers (transaction_number).
- Collision-checked opaque identifiers (transaction_id, transaction_ref, refund_ref).

Rules:
- Sequence increments are a single UPDATE ... SET value = value + 1.
  No process-local counters.
- Opaque ids are PREFIX-<base36 ms timestamp>-<6 random base36 chars>, upper-case.
- A candidate that already exists is regenerated; after MAX_ATTEMPTS the
  caller gets IdGenerationError.
"""

from __future__ import annotations

import logging
import secrets
import time

from django.db import transaction
from django.db.models import F

from sales.models.sequence import Sequence
from sales.services.exceptions import IdGenerationError

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
RANDOM_LENGTH = 6
BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"

    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(BASE36[rem])
    return "".join(reversed(digits))


@transaction.atomic
def next_sequence(category: str) -> int:
    """
    Next value of a named counter. The first call for a category returns 1.
    """
    Sequence.objects.get_or_create(name=category)
    Sequence.objects.filter(name=category).update(value=F("value") + 1)
    return Sequence.objects.values_list("value", flat=True).get(name=category)


def format_transaction_number(transaction_type: str, seq: int) -> str:
    return f"{(transaction_type or 'txn')[:3].upper()}{int(seq):08d}"


def _persisted_lookup(field: str):
    # Imported lazily: the models import this module from save().
    from sales.models import Transaction, TransactionRefund

    model = TransactionRefund if field == "refund_ref" else Transaction

    def exists(candidate: str) -> bool:
        return model.objects.filter(**{field: candidate}).exists()

    return exists


def _candidate(prefix: str) -> str:
    ts = to_base36(int(time.time() * 1000))
    rand = "".join(secrets.choice(BASE36) for _ in range(RANDOM_LENGTH))
    return f"{prefix}-{ts}-{rand}".upper()


def generate_unique_id(prefix: str = "TXN", *, field: str = "transaction_id", exists=None) -> str:
    """
    Generate a unique opaque identifier.

    `exists(candidate) -> bool` reports collisions; by default it checks the
    persisted rows for `field`.
    """
    exists = exists or _persisted_lookup(field)

    for attempt in range(1, MAX_ATTEMPTS + 1):
        candidate = _candidate(prefix)
        if not exists(candidate):
            return candidate
        logger.warning(
            "Identifier collision",
            extra={"prefix": prefix, "field": field, "attempt": attempt},
        )

    raise IdGenerationError(f"Failed to generate unique {field} after {MAX_ATTEMPTS} attempts")

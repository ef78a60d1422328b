# sales/tests/test_identifiers.py

from __future__ import annotations

import re
import threading
from concurrent.futures import ThreadPoolExecutor

from django.test import SimpleTestCase, TestCase

from sales.models import Sequence
from sales.services.exceptions import IdGenerationError
from sales.services.identifiers import (
    MAX_ATTEMPTS,
    format_transaction_number,
    generate_unique_id,
    next_sequence,
    to_base36,
)

from .helpers import make_medicine, make_staff, make_transaction

ID_PATTERN = re.compile(r"^TXN-[0-9A-Z]+-[0-9A-Z]{6}$")


class IdentifierFormatTests(SimpleTestCase):
    def test_base36(self):
        self.assertEqual(to_base36(0), "0")
        self.assertEqual(to_base36(35), "z")
        self.assertEqual(to_base36(36), "10")
        with self.assertRaises(ValueError):
            to_base36(-1)

    def test_transaction_number_format(self):
        self.assertEqual(format_transaction_number("sale", 42), "SAL00000042")
        self.assertEqual(format_transaction_number("purchase", 1), "PUR00000001")

    def test_unique_id_shape(self):
        value = generate_unique_id("txn", exists=lambda candidate: False)
        self.assertRegex(value, ID_PATTERN)

    def test_collision_is_retried(self):
        calls = []

        def exists(candidate):
            calls.append(candidate)
            return len(calls) < 3

        value = generate_unique_id("TXN", exists=exists)

        self.assertEqual(len(calls), 3)
        self.assertEqual(value, calls[-1])

    def test_gives_up_after_max_attempts(self):
        calls = []

        def exists(candidate):
            calls.append(candidate)
            return True

        with self.assertRaises(IdGenerationError):
            generate_unique_id("TXN", exists=exists)
        self.assertEqual(len(calls), MAX_ATTEMPTS)

    def test_concurrent_generation_is_unique(self):
        seen = set()
        lock = threading.Lock()

        def exists(candidate):
            with lock:
                if candidate in seen:
                    return True
                seen.add(candidate)
                return False

        with ThreadPoolExecutor(max_workers=32) as pool:
            values = list(pool.map(lambda _: generate_unique_id("TXN", exists=exists), range(1000)))

        self.assertEqual(len(values), 1000)
        self.assertEqual(len(set(values)), 1000)


class SequenceTests(TestCase):
    def test_sequence_starts_at_one_per_category(self):
        self.assertEqual(next_sequence("sale_number"), 1)
        self.assertEqual(next_sequence("sale_number"), 2)
        self.assertEqual(next_sequence("purchase_number"), 1)
        self.assertEqual(Sequence.objects.get(name="sale_number").value, 2)


class TransactionIdentifierTests(TestCase):
    def setUp(self):
        self.owner, self.cashier, _ = make_staff()
        self.medicine = make_medicine(self.owner, name="Paracetamol 500mg", unit_price="2.50")

    def test_identifiers_assigned_once(self):
        first = make_transaction(self.owner, self.cashier, [(self.medicine, 1)])
        second = make_transaction(self.owner, self.cashier, [(self.medicine, 2)])

        self.assertRegex(first.transaction_id, ID_PATTERN)
        self.assertTrue(first.transaction_ref.startswith("REF-"))
        self.assertEqual(first.transaction_number, "SAL00000001")
        self.assertEqual(second.transaction_number, "SAL00000002")
        self.assertNotEqual(first.transaction_id, second.transaction_id)

        original = (first.transaction_id, first.transaction_number, first.transaction_ref)
        first.notes = "updated"
        first.save()
        first.refresh_from_db()
        self.assertEqual(
            (first.transaction_id, first.transaction_number, first.transaction_ref), original
        )

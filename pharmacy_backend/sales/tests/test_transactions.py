# sales/tests/test_transactions.py

"""
TRANSACTION AGGREGATE TESTS

Run with:
    python manage.py test sales -v 2
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from sales.models import Transaction, TransactionItem
from sales.services.exceptions import ConsistencyError, TransactionNotEditableError, ValidationError

from .helpers import make_completed, make_medicine, make_staff, make_transaction


class TransactionFinancialsTests(TestCase):
    def setUp(self):
        self.owner, self.cashier, _ = make_staff()
        self.med_a = make_medicine(self.owner, name="Amoxicillin 500mg", unit_price="10.00", cost_price="6.00")
        self.med_b = make_medicine(self.owner, name="ORS Sachet", unit_price="5.00")

    def test_totals_and_profit_derived_from_items(self):
        txn = make_transaction(
            self.owner,
            self.cashier,
            [(self.med_a, 2), (self.med_b, 1)],
            tax_rate=Decimal("0.08"),
            tax=Decimal("2.00"),
        )

        txn.refresh_from_db()
        self.assertEqual(txn.subtotal, Decimal("25.00"))
        self.assertEqual(txn.total_amount, Decimal("27.00"))
        self.assertEqual(txn.payment_amount, Decimal("27.00"))
        # (10 - 6) * 2 + (5 - 0) * 1
        self.assertEqual(txn.profit, Decimal("13.00"))
        self.assertEqual(txn.margin_percentage, Decimal("52.00"))

        for item in txn.items.all():
            self.assertEqual(item.total_price, item.unit_price * item.quantity)
        self.assertEqual(sum(i.total_price for i in txn.items.all()), txn.subtotal)

    def test_total_is_floored_at_zero(self):
        txn = make_transaction(
            self.owner, self.cashier, [(self.med_b, 1)], discount=Decimal("100.00")
        )
        self.assertEqual(txn.total_amount, Decimal("0.00"))

    def test_total_includes_delivery_fee(self):
        txn = make_transaction(
            self.owner,
            self.cashier,
            [(self.med_a, 1)],
            tax=Decimal("0.80"),
            discount=Decimal("1.00"),
            delivery_fee=Decimal("5.00"),
        )
        self.assertEqual(txn.total_amount, Decimal("14.80"))

    def test_transaction_requires_items(self):
        with self.assertRaises(ValidationError):
            make_transaction(self.owner, self.cashier, [])
        self.assertEqual(Transaction.objects.count(), 0)

    def test_negative_discount_rejected(self):
        with self.assertRaises(ValidationError):
            make_transaction(self.owner, self.cashier, [(self.med_a, 1)], discount=Decimal("-1.00"))

    def test_tax_rate_must_be_a_fraction(self):
        with self.assertRaises(ValidationError):
            make_transaction(self.owner, self.cashier, [(self.med_a, 1)], tax_rate=Decimal("1.5"))

    def test_unknown_status_rejected(self):
        with self.assertRaises(ValidationError):
            make_transaction(self.owner, self.cashier, [(self.med_a, 1)], status="archived")

    def test_expired_line_rejected(self):
        expired = make_medicine(
            self.owner,
            name="Old syrup",
            unit_price="3.00",
            expiry_date=timezone.localdate() - timedelta(days=1),
        )
        with self.assertRaises(ValidationError):
            make_transaction(self.owner, self.cashier, [(expired, 1)])
        self.assertEqual(Transaction.objects.count(), 0)

    def test_corrupted_line_total_is_reported(self):
        txn = make_transaction(self.owner, self.cashier, [(self.med_a, 2)])
        TransactionItem.objects.filter(transaction=txn).update(total_price=Decimal("999.00"))

        txn.notes = "recount"
        with self.assertRaises(ConsistencyError):
            txn.save()

        txn.refresh_from_db()
        self.assertEqual(txn.subtotal, Decimal("20.00"))


class TransactionStatusTests(TestCase):
    def setUp(self):
        self.owner, self.cashier, _ = make_staff()
        self.medicine = make_medicine(self.owner, name="Ibuprofen 200mg", unit_price="4.00")

    def test_completed_payment_promotes_pending(self):
        txn = make_completed(self.owner, self.cashier, [(self.medicine, 1)])

        self.assertEqual(txn.status, Transaction.STATUS_COMPLETED)
        self.assertIsNotNone(txn.paid_at)

    def test_auto_status_is_idempotent(self):
        txn = make_completed(self.owner, self.cashier, [(self.medicine, 1)])
        paid_at = txn.paid_at

        txn.apply_auto_status()
        txn.apply_auto_status()
        txn.save()
        txn.refresh_from_db()

        self.assertEqual(txn.status, Transaction.STATUS_COMPLETED)
        self.assertEqual(txn.paid_at, paid_at)

    def test_failed_payment_keeps_pending_and_stamps_once(self):
        txn = make_transaction(
            self.owner,
            self.cashier,
            [(self.medicine, 1)],
            payment_status=Transaction.PAYMENT_FAILED,
        )
        failed_at = txn.failed_at
        self.assertEqual(txn.status, Transaction.STATUS_PENDING)
        self.assertIsNotNone(failed_at)

        txn.save()
        self.assertEqual(txn.failed_at, failed_at)

    def test_failed_payment_never_regresses_completed(self):
        txn = make_completed(self.owner, self.cashier, [(self.medicine, 1)])

        txn.payment_status = Transaction.PAYMENT_FAILED
        txn.apply_auto_status()

        self.assertEqual(txn.status, Transaction.STATUS_COMPLETED)

    def test_draft_is_not_promoted(self):
        txn = make_transaction(
            self.owner, self.cashier, [(self.medicine, 1)], status=Transaction.STATUS_DRAFT
        )
        self.assertEqual(txn.status, Transaction.STATUS_DRAFT)
        self.assertTrue(txn.is_editable)


class TransactionImmutabilityTests(TestCase):
    def setUp(self):
        self.owner, self.cashier, _ = make_staff()
        self.medicine = make_medicine(self.owner, name="Cetirizine 10mg", unit_price="3.00")
        self.txn = make_completed(self.owner, self.cashier, [(self.medicine, 2)])

    def test_financial_fields_frozen_after_completion(self):
        self.txn.discount = Decimal("1.00")
        with self.assertRaises(TransactionNotEditableError):
            self.txn.save()

    def test_completed_cannot_go_back_to_pending(self):
        self.txn.status = Transaction.STATUS_PENDING
        with self.assertRaises(TransactionNotEditableError):
            self.txn.save()

    def test_identifiers_cannot_change(self):
        self.txn.transaction_id = "TXN-OTHER-ABCDEF"
        with self.assertRaises(TransactionNotEditableError):
            self.txn.save()

    def test_items_frozen_after_completion(self):
        line = TransactionItem(
            transaction=self.txn,
            **TransactionItem.values_from_medicine(self.medicine, quantity=1),
        )
        with self.assertRaises(TransactionNotEditableError):
            line.save()

        existing = self.txn.items.first()
        with self.assertRaises(TransactionNotEditableError):
            existing.delete()
        self.assertEqual(self.txn.items.count(), 1)

    def test_notes_and_delivery_progress_still_allowed(self):
        self.txn.notes = "Customer asked for a receipt copy"
        self.txn.save()
        self.txn.refresh_from_db()
        self.assertEqual(self.txn.notes, "Customer asked for a receipt copy")

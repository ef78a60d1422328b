# sales/tests/test_lifecycle.py

from __future__ import annotations

from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from sales.models import Transaction
from sales.services.exceptions import (
    InvalidDeliveryTransitionError,
    TransactionNotEditableError,
    TransactionNotFoundError,
)
from sales.services.transaction_lifecycle import (
    DELIVERY_TRANSITIONS,
    can_transition_delivery,
    cancel_transaction,
    update_delivery_status,
)

from .helpers import make_completed, make_medicine, make_staff, make_transaction

ALLOWED = {
    ("pending", "confirmed"),
    ("pending", "cancelled"),
    ("confirmed", "preparing"),
    ("confirmed", "cancelled"),
    ("preparing", "out_for_delivery"),
    ("preparing", "cancelled"),
    ("out_for_delivery", "delivered"),
    ("out_for_delivery", "failed"),
    ("out_for_delivery", "cancelled"),
    ("failed", "cancelled"),
}


class DeliveryTransitionTableTests(SimpleTestCase):
    def test_every_pair_matches_table(self):
        states = [value for value, _ in Transaction.DELIVERY_STATUS_CHOICES]
        for from_status in states:
            for to_status in states:
                with self.subTest(from_status=from_status, to_status=to_status):
                    self.assertEqual(
                        can_transition_delivery(from_status=from_status, to_status=to_status),
                        (from_status, to_status) in ALLOWED,
                    )

    def test_terminal_states_have_no_exit(self):
        for state in ("delivered", "cancelled", "not_applicable"):
            self.assertEqual(DELIVERY_TRANSITIONS[state], set())

    def test_unknown_state_is_rejected(self):
        self.assertFalse(can_transition_delivery(from_status="lost", to_status="pending"))


class DeliveryStatusServiceTests(TestCase):
    def setUp(self):
        self.owner, self.cashier, self.manager = make_staff()
        self.medicine = make_medicine(self.owner, name="Vitamin C 1000mg", unit_price="8.00")
        self.txn = make_completed(
            self.owner,
            self.cashier,
            [(self.medicine, 1)],
            delivery_option="delivery",
            delivery_status=Transaction.DELIVERY_PENDING,
        )

    def test_walks_the_happy_path(self):
        for step in ("confirmed", "preparing", "out_for_delivery", "delivered"):
            txn = update_delivery_status(self.txn.pk, new_status=step, user=self.manager)
            self.assertEqual(txn.delivery_status, step)

        txn.refresh_from_db()
        self.assertIsNotNone(txn.actual_delivery)
        self.assertEqual(txn.status, Transaction.STATUS_COMPLETED)
        self.assertEqual(txn.updated_by, self.manager)

    def test_invalid_transition_is_not_applied(self):
        with self.assertRaises(InvalidDeliveryTransitionError):
            update_delivery_status(self.txn.pk, new_status="delivered", user=self.manager)

        self.txn.refresh_from_db()
        self.assertEqual(self.txn.delivery_status, Transaction.DELIVERY_PENDING)

    def test_self_transition_rejected(self):
        with self.assertRaises(InvalidDeliveryTransitionError):
            update_delivery_status(self.txn.pk, new_status="pending", user=self.manager)

    def test_scoped_to_owner(self):
        other_owner, _, _ = make_staff("other@pharmacy.test")
        with self.assertRaises(TransactionNotFoundError):
            update_delivery_status(
                self.txn.pk, new_status="confirmed", user=self.manager, owner=other_owner
            )


class CancelTransactionTests(TestCase):
    def setUp(self):
        self.owner, self.cashier, self.manager = make_staff()
        self.medicine = make_medicine(self.owner, name="Zinc tablets", unit_price="6.00")

    def test_pending_transaction_can_be_cancelled(self):
        txn = make_transaction(
            self.owner,
            self.cashier,
            [(self.medicine, 1)],
            delivery_option="delivery",
            delivery_status=Transaction.DELIVERY_PENDING,
        )

        txn = cancel_transaction(txn.pk, user=self.manager, reason=" customer left ")

        self.assertEqual(txn.status, Transaction.STATUS_CANCELLED)
        self.assertEqual(txn.delivery_status, Transaction.DELIVERY_CANCELLED)
        self.assertEqual(txn.cancelled_by, self.manager)
        self.assertEqual(txn.cancellation_reason, "customer left")
        self.assertIsNotNone(txn.cancelled_at)

    def test_completed_transaction_cannot_be_cancelled(self):
        txn = make_completed(self.owner, self.cashier, [(self.medicine, 1)])

        with self.assertRaises(TransactionNotEditableError):
            cancel_transaction(txn.pk, user=self.manager)

        txn.refresh_from_db()
        self.assertEqual(txn.status, Transaction.STATUS_COMPLETED)


class LifecycleAPITests(TestCase):
    def setUp(self):
        self.owner, self.cashier, self.manager = make_staff()
        self.medicine = make_medicine(self.owner, name="Vitamin D3", unit_price="12.00")
        self.client = APIClient()

    def test_delivery_status_endpoint(self):
        txn = make_completed(
            self.owner,
            self.cashier,
            [(self.medicine, 1)],
            delivery_option="delivery",
            delivery_status=Transaction.DELIVERY_PENDING,
        )
        url = f"/api/sales/transactions/{txn.pk}/delivery-status/"
        self.client.force_authenticate(self.manager)

        res = self.client.post(url, {"status": "confirmed"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["delivery_status"], "confirmed")

        res = self.client.post(url, {"status": "delivered"}, format="json")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "INVALID_DELIVERY_TRANSITION")

    def test_cashier_cannot_cancel(self):
        txn = make_transaction(self.owner, self.cashier, [(self.medicine, 1)])
        self.client.force_authenticate(self.cashier)

        res = self.client.post(f"/api/sales/transactions/{txn.pk}/cancel/", {}, format="json")

        self.assertEqual(res.status_code, 403)

    def test_manager_cancels_pending(self):
        txn = make_transaction(self.owner, self.cashier, [(self.medicine, 1)])
        self.client.force_authenticate(self.manager)

        res = self.client.post(
            f"/api/sales/transactions/{txn.pk}/cancel/", {"reason": "duplicate"}, format="json"
        )

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["status"], "cancelled")

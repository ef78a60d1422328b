# sales/tests/test_checkout.py

"""
CHECKOUT ORCHESTRATOR TESTS

Covers:
- cart -> transaction conversion, totals, stock decrement, cart clearing
- stock checked for every line before anything is written
- payment failure / timeout leaves no transaction behind
- drafts, paying a draft later, delivery option changes, summary preview
"""

from __future__ import annotations

from decimal import Decimal
from unittest import mock

from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from payments.tests.doubles import FixedCardGateway, HangingCardGateway
from pos.models import Cart
from pos.services import cart_service
from products.models import Medicine
from sales.models import DeliveryAddress, Transaction
from sales.services import checkout_orchestrator
from sales.services.exceptions import (
    EmptyCartError,
    InsufficientStockError,
    InvalidQuantityError,
    PaymentFailedError,
    PaymentTimeoutError,
    ProductNotFoundError,
    TransactionNotEditableError,
)

from .helpers import make_medicine, make_staff


class CheckoutTestCase(TestCase):
    def setUp(self):
        self.owner, self.cashier, self.manager = make_staff()
        self.med_a = make_medicine(
            self.owner, name="Amoxicillin 500mg", unit_price="10.00", cost_price="6.00", quantity=20
        )
        self.med_b = make_medicine(self.owner, name="ORS Sachet", unit_price="5.00", quantity=20)
        self.cart = cart_service.get_active_cart(user=self.cashier)

    def fill_cart(self):
        cart_service.add_item(self.cart.pk, medicine_id=self.med_a.pk, quantity=2)
        return cart_service.add_item(self.cart.pk, medicine_id=self.med_b.pk, quantity=1)

    def assertStock(self, medicine, expected):
        medicine.refresh_from_db()
        self.assertEqual(medicine.quantity, expected)


class CartCheckoutTests(CheckoutTestCase):
    def test_cart_checkout_completes_and_clears_cart(self):
        self.fill_cart()

        txn = checkout_orchestrator.checkout(user=self.cashier, payment={"type": "cash"})

        self.assertEqual(txn.status, Transaction.STATUS_COMPLETED)
        self.assertEqual(txn.payment_status, Transaction.PAYMENT_COMPLETED)
        self.assertEqual(txn.sale_type, "checkout")
        self.assertEqual(txn.owner, self.owner)
        self.assertEqual(txn.created_by, self.cashier)
        self.assertEqual(txn.subtotal, Decimal("25.00"))
        self.assertEqual(txn.tax, Decimal("2.00"))
        self.assertEqual(txn.total_amount, Decimal("27.00"))
        self.assertEqual(txn.payment_details["cash_received"], "27.00")
        self.assertEqual(txn.items.count(), 2)

        self.assertStock(self.med_a, 18)
        self.assertStock(self.med_b, 19)

        self.cart.refresh_from_db()
        self.assertEqual(self.cart.status, Cart.STATUS_COMPLETED)
        self.assertEqual(self.cart.items.count(), 0)

    def test_missing_payment_request_settles_as_cash(self):
        self.fill_cart()

        txn = checkout_orchestrator.checkout(user=self.cashier)

        self.assertEqual(txn.payment_method, Transaction.PAYMENT_CASH)
        self.assertEqual(txn.status, Transaction.STATUS_COMPLETED)

    def test_cart_percentage_discount_carries_over(self):
        self.fill_cart()
        cart_service.apply_discount(self.cart.pk, 10, Cart.DISCOUNT_PERCENTAGE)

        txn = checkout_orchestrator.checkout(user=self.cashier, tax_rate=Decimal("0"))

        self.assertEqual(txn.discount, Decimal("2.50"))
        self.assertEqual(txn.total_amount, Decimal("22.50"))

    def test_customer_details_recorded(self):
        self.fill_cart()

        txn = checkout_orchestrator.checkout(
            user=self.cashier,
            customer={"name": "Amina Y.", "phone": "0700000000"},
        )

        self.assertEqual(txn.customer_name, "Amina Y.")
        self.assertEqual(txn.customer_phone, "0700000000")

    def test_purchase_cart_checks_out_on_its_own(self):
        self.fill_cart()
        purchase_cart = cart_service.get_active_cart(
            user=self.cashier, transaction_type=Cart.TYPE_PURCHASE
        )
        cart_service.add_item(purchase_cart.pk, medicine_id=self.med_b.pk, quantity=10)

        txn = checkout_orchestrator.checkout(
            user=self.cashier, transaction_type=Transaction.TYPE_PURCHASE
        )

        self.assertEqual(txn.transaction_type, Transaction.TYPE_PURCHASE)
        self.assertTrue(txn.transaction_number.startswith("PUR"))
        self.assertEqual(txn.items.get().quantity, 10)
        self.assertStock(self.med_b, 20)

        purchase_cart.refresh_from_db()
        self.assertEqual(purchase_cart.status, Cart.STATUS_COMPLETED)
        self.cart.refresh_from_db()
        self.assertEqual(self.cart.status, Cart.STATUS_ACTIVE)
        self.assertEqual(self.cart.items.count(), 2)

    def test_empty_cart_rejected(self):
        with self.assertRaises(EmptyCartError):
            checkout_orchestrator.checkout(user=self.cashier)
        self.assertEqual(Transaction.objects.count(), 0)


class StockGuardTests(CheckoutTestCase):
    def test_insufficient_stock_leaves_nothing_behind(self):
        self.fill_cart()
        Medicine.objects.filter(pk=self.med_a.pk).update(quantity=1)

        with self.assertRaises(InsufficientStockError) as ctx:
            checkout_orchestrator.checkout(user=self.cashier)

        self.assertEqual(ctx.exception.product_name, "Amoxicillin 500mg")
        self.assertEqual(ctx.exception.available, 1)
        self.assertEqual(ctx.exception.requested, 2)
        self.assertEqual(Transaction.objects.count(), 0)
        self.assertStock(self.med_a, 1)
        self.assertStock(self.med_b, 20)

        self.cart.refresh_from_db()
        self.assertEqual(self.cart.status, Cart.STATUS_ACTIVE)
        self.assertEqual(self.cart.items.count(), 2)

    def test_failed_decrement_rolls_back_whole_checkout(self):
        self.fill_cart()
        # Another sale takes B's stock between the check and the decrement.
        Medicine.objects.filter(pk=self.med_b.pk).update(quantity=0)

        with mock.patch.object(checkout_orchestrator, "assert_stock_available"):
            with self.assertRaises(InsufficientStockError):
                checkout_orchestrator.checkout(user=self.cashier)

        self.assertEqual(Transaction.objects.count(), 0)
        self.assertStock(self.med_a, 20)
        self.assertStock(self.med_b, 0)

    def test_repeated_medicine_quantities_are_summed(self):
        with self.assertRaises(InsufficientStockError):
            checkout_orchestrator.checkout(
                user=self.cashier,
                items=[
                    {"medicine_id": self.med_a.pk, "quantity": 15},
                    {"medicine_id": self.med_a.pk, "quantity": 15},
                ],
            )
        self.assertStock(self.med_a, 20)


class PaymentFailureTests(CheckoutTestCase):
    def test_declined_card_creates_no_transaction(self):
        self.fill_cart()
        gateway = FixedCardGateway(approved=False, message="Payment declined by bank")

        with self.assertRaises(PaymentFailedError) as ctx:
            checkout_orchestrator.checkout(
                user=self.cashier,
                payment={"type": "card", "extra": {"card_number": "4242424242424242"}},
                card_gateway=gateway,
            )

        self.assertEqual(str(ctx.exception), "Payment declined by bank")
        self.assertEqual(len(gateway.calls), 1)
        self.assertEqual(Transaction.objects.count(), 0)
        self.assertStock(self.med_a, 20)
        self.cart.refresh_from_db()
        self.assertEqual(self.cart.status, Cart.STATUS_ACTIVE)

    @override_settings(POS={"PAYMENT_TIMEOUT_SECONDS": 0.2})
    def test_gateway_timeout_creates_no_transaction(self):
        self.fill_cart()
        gateway = HangingCardGateway()
        self.addCleanup(gateway.release.set)

        with self.assertRaises(PaymentTimeoutError):
            checkout_orchestrator.checkout(
                user=self.cashier, payment={"type": "card"}, card_gateway=gateway
            )

        self.assertEqual(Transaction.objects.count(), 0)

    def test_unsupported_method(self):
        self.fill_cart()

        with self.assertRaises(PaymentFailedError):
            checkout_orchestrator.checkout(user=self.cashier, payment={"type": "cheque"})
        self.assertEqual(Transaction.objects.count(), 0)

    def test_approved_card_records_masked_details(self):
        self.fill_cart()
        gateway = FixedCardGateway(approved=True)

        txn = checkout_orchestrator.checkout(
            user=self.cashier,
            payment={"type": "card", "extra": {"card_number": "4242424242424242"}},
            card_gateway=gateway,
        )

        self.assertEqual(txn.payment_method, Transaction.PAYMENT_CARD)
        self.assertEqual(txn.payment_details["card_last_four"], "4242")
        self.assertEqual(txn.payment_details["authorization_code"], "AUTHTEST")
        self.assertNotIn("card_number", txn.payment_details)


class QuickCheckoutTests(CheckoutTestCase):
    def test_explicit_items_bypass_cart(self):
        self.fill_cart()

        txn = checkout_orchestrator.checkout(
            user=self.cashier,
            items=[{"medicine_id": self.med_b.pk, "quantity": 3}],
            tax_rate=Decimal("0"),
        )

        self.assertEqual(txn.sale_type, "quick")
        self.assertEqual(txn.total_amount, Decimal("15.00"))
        self.assertStock(self.med_b, 17)

        # The cart is untouched by a quick sale.
        self.cart.refresh_from_db()
        self.assertEqual(self.cart.status, Cart.STATUS_ACTIVE)

    def test_fractional_quantity_rejected(self):
        with self.assertRaises(InvalidQuantityError):
            checkout_orchestrator.checkout(
                user=self.cashier, items=[{"medicine_id": self.med_a.pk, "quantity": "1.5"}]
            )

    def test_other_pharmacy_medicine_not_found(self):
        other_owner, _, _ = make_staff("other@pharmacy.test")
        foreign = make_medicine(other_owner, name="Foreign syrup", unit_price="7.00")

        with self.assertRaises(ProductNotFoundError):
            checkout_orchestrator.checkout(
                user=self.cashier, items=[{"medicine_id": foreign.pk, "quantity": 1}]
            )


class DraftTests(CheckoutTestCase):
    def test_draft_does_not_touch_stock_or_cart(self):
        self.fill_cart()

        draft = checkout_orchestrator.checkout(user=self.cashier, save_as_draft=True)

        self.assertEqual(draft.status, Transaction.STATUS_DRAFT)
        self.assertEqual(draft.payment_status, Transaction.PAYMENT_PENDING)
        self.assertStock(self.med_a, 20)
        self.cart.refresh_from_db()
        self.assertEqual(self.cart.status, Cart.STATUS_ACTIVE)

    def test_draft_checked_out_later(self):
        draft = checkout_orchestrator.checkout(
            user=self.cashier,
            items=[{"medicine_id": self.med_a.pk, "quantity": 3}],
            save_as_draft=True,
        )

        txn = checkout_orchestrator.checkout(user=self.cashier, transaction_pk=draft.pk)

        self.assertEqual(txn.pk, draft.pk)
        self.assertEqual(txn.status, Transaction.STATUS_COMPLETED)
        self.assertEqual(txn.transaction_number, draft.transaction_number)
        self.assertStock(self.med_a, 17)

    def test_process_payment_settles_draft(self):
        draft = checkout_orchestrator.checkout(
            user=self.cashier,
            items=[{"medicine_id": self.med_b.pk, "quantity": 2}],
            save_as_draft=True,
        )

        txn = checkout_orchestrator.process_payment(
            draft.pk, user=self.cashier, payment={"type": "bank_transfer"}
        )

        self.assertEqual(txn.status, Transaction.STATUS_COMPLETED)
        self.assertTrue(txn.payment_details["bank_reference"].startswith("BT"))
        self.assertStock(self.med_b, 18)

        with self.assertRaises(TransactionNotEditableError):
            checkout_orchestrator.process_payment(
                draft.pk, user=self.cashier, payment={"type": "cash"}
            )


class DeliveryTests(CheckoutTestCase):
    def setUp(self):
        super().setUp()
        self.address = DeliveryAddress.objects.create(
            owner=self.owner, recipient_name="Amina Y.", line1="12 Market Rd", city="Kampala"
        )

    def test_delivery_adds_fee_and_address(self):
        self.fill_cart()

        txn = checkout_orchestrator.checkout(
            user=self.cashier,
            delivery={"option": "delivery", "address_id": self.address.pk},
        )

        self.assertEqual(txn.delivery_fee, Decimal("5.00"))
        self.assertEqual(txn.total_amount, Decimal("32.00"))
        self.assertEqual(txn.delivery_address, self.address)
        self.assertEqual(txn.delivery_status, Transaction.DELIVERY_PENDING)

    def test_unknown_address_is_soft_failure(self):
        self.fill_cart()

        txn = checkout_orchestrator.checkout(
            user=self.cashier,
            delivery={"option": "delivery", "address_id": "00000000-0000-0000-0000-000000000000"},
        )

        self.assertIsNone(txn.delivery_address)
        self.assertEqual(txn.delivery_fee, Decimal("5.00"))

    def test_draft_keeps_address_when_checked_out(self):
        draft = checkout_orchestrator.checkout(
            user=self.cashier,
            items=[{"medicine_id": self.med_a.pk, "quantity": 1}],
            delivery={"option": "delivery", "address_id": self.address.pk},
            save_as_draft=True,
        )
        self.assertEqual(draft.delivery_address, self.address)

        txn = checkout_orchestrator.checkout(user=self.cashier, transaction_pk=draft.pk)

        self.assertEqual(txn.status, Transaction.STATUS_COMPLETED)
        self.assertEqual(txn.delivery_option, "delivery")
        self.assertEqual(txn.delivery_address, self.address)
        self.assertEqual(txn.delivery_fee, Decimal("5.00"))

    def test_update_delivery_option_on_draft(self):
        draft = checkout_orchestrator.checkout(
            user=self.cashier,
            items=[{"medicine_id": self.med_a.pk, "quantity": 1}],
            save_as_draft=True,
        )
        self.assertEqual(draft.total_amount, Decimal("10.80"))

        txn = checkout_orchestrator.update_delivery_option(
            draft.pk, user=self.cashier, delivery_option="delivery", address_ref=self.address.pk
        )
        self.assertEqual(txn.total_amount, Decimal("15.80"))
        self.assertEqual(txn.delivery_status, Transaction.DELIVERY_PENDING)

        txn = checkout_orchestrator.update_delivery_option(
            draft.pk, user=self.cashier, delivery_option="pickup"
        )
        self.assertEqual(txn.total_amount, Decimal("10.80"))
        self.assertIsNone(txn.delivery_address)
        self.assertEqual(txn.delivery_status, Transaction.DELIVERY_NOT_APPLICABLE)

    def test_delivery_option_locked_after_completion(self):
        self.fill_cart()
        txn = checkout_orchestrator.checkout(user=self.cashier)

        with self.assertRaises(TransactionNotEditableError):
            checkout_orchestrator.update_delivery_option(
                txn.pk, user=self.cashier, delivery_option="delivery"
            )


class SummaryTests(CheckoutTestCase):
    def test_summary_previews_cart_without_writing(self):
        self.fill_cart()

        summary = checkout_orchestrator.checkout_summary(user=self.cashier, delivery_option="delivery")

        self.assertEqual(summary["cart_id"], str(self.cart.pk))
        self.assertIsNone(summary["transaction_id"])
        self.assertEqual(summary["summary"]["subtotal"], "25.00")
        self.assertEqual(summary["summary"]["delivery_fee"], "5.00")
        self.assertEqual(summary["summary"]["total_amount"], "32.00")
        self.assertEqual(summary["summary"]["total_quantity"], 3)
        self.assertEqual(Transaction.objects.count(), 0)


# ============================================================
# API
# ============================================================

class CheckoutAPITests(CheckoutTestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(self.cashier)

    def test_quick_checkout(self):
        res = self.client.post(
            "/api/checkout/quick/",
            {
                "items": [{"medicine_id": str(self.med_a.pk), "quantity": 2}],
                "payment": {"type": "cash"},
            },
            format="json",
        )

        self.assertEqual(res.status_code, 201)
        body = res.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["status"], "completed")
        self.assertEqual(body["data"]["sale_type"], "quick")
        self.assertEqual(body["data"]["total_amount"], "21.60")
        self.assertRegex(body["data"]["transaction_id"], r"^TXN-[0-9A-Z]+-[0-9A-Z]{6}$")
        self.assertStock(self.med_a, 18)

    def test_cart_checkout_as_draft(self):
        self.fill_cart()

        res = self.client.post("/api/checkout/process/", {"save_as_draft": True}, format="json")

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.json()["data"]["status"], "draft")
        self.assertStock(self.med_a, 20)

    def test_full_sale_records_sale_type(self):
        self.fill_cart()

        res = self.client.post("/api/sales/full-sale/", {"payment": {"type": "cash"}}, format="json")

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.json()["data"]["sale_type"], "full")
        self.assertEqual(res.json()["data"]["total_amount"], "27.00")

    def test_per_medicine_sale(self):
        res = self.client.post(
            "/api/sales/per-medicine-sale/",
            {"items": [{"medicine_id": str(self.med_b.pk), "quantity": 4}]},
            format="json",
        )

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.json()["data"]["sale_type"], "per_medicine")
        self.assertStock(self.med_b, 16)

    def test_insufficient_stock_envelope(self):
        res = self.client.post(
            "/api/checkout/quick/",
            {"items": [{"medicine_id": str(self.med_a.pk), "quantity": 25}]},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        body = res.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"]["code"], "INSUFFICIENT_STOCK")
        self.assertEqual(body["error"]["details"]["available"], 20)
        self.assertEqual(body["error"]["details"]["requested"], 25)
        self.assertEqual(Transaction.objects.count(), 0)

    @override_settings(PAYMENTS={"CARD_GATEWAY": "payments.tests.doubles.DeclinedCardGateway"})
    def test_declined_card_envelope(self):
        res = self.client.post(
            "/api/checkout/quick/",
            {
                "items": [{"medicine_id": str(self.med_a.pk), "quantity": 1}],
                "payment": {"type": "card", "extra": {"card_number": "4000000000000002"}},
            },
            format="json",
        )

        self.assertEqual(res.status_code, 402)
        self.assertEqual(res.json()["error"]["code"], "PAYMENT_FAILED")
        self.assertEqual(Transaction.objects.count(), 0)
        self.assertStock(self.med_a, 20)

    def test_empty_cart_envelope(self):
        res = self.client.post("/api/checkout/process/", {}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"]["code"], "EMPTY_CART")

    def test_summary(self):
        self.fill_cart()

        res = self.client.get("/api/checkout/summary/")

        self.assertEqual(res.status_code, 200)
        summary = res.json()["data"]["summary"]
        self.assertEqual(summary["subtotal"], "25.00")
        self.assertEqual(summary["total_amount"], "27.00")
        self.assertEqual(summary["total_items"], 2)

    def test_payment_and_delivery_option_on_draft(self):
        draft = checkout_orchestrator.checkout(
            user=self.cashier,
            items=[{"medicine_id": self.med_a.pk, "quantity": 1}],
            save_as_draft=True,
        )

        res = self.client.post(
            "/api/checkout/delivery-option/",
            {"transaction_id": str(draft.pk), "delivery_option": "delivery"},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["data"]["delivery_fee"], "5.00")

        res = self.client.post(
            "/api/checkout/payment/",
            {"transaction_id": str(draft.pk), "payment": {"type": "cash"}},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["data"]["status"], "completed")

        res = self.client.post(
            "/api/checkout/payment/",
            {"transaction_id": str(draft.pk), "payment": {"type": "cash"}},
            format="json",
        )
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.json()["error"]["code"], "TRANSACTION_NOT_EDITABLE")

    def test_anonymous_rejected(self):
        self.client.force_authenticate(None)

        res = self.client.post("/api/checkout/quick/", {}, format="json")

        self.assertEqual(res.status_code, 401)

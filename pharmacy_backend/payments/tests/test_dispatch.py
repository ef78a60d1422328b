# payments/tests/test_dispatch.py

from decimal import Decimal

from django.test import SimpleTestCase, override_settings

from payments.services.dispatch import FAILURE_DECLINED, FAILURE_TIMEOUT, dispatch
from payments.tests.doubles import (
    FixedCardGateway,
    FixedWalletGateway,
    HangingCardGateway,
)
from sales.services.exceptions import UnsupportedPaymentMethodError

CARD_METHOD = {
    "id": "pm-1",
    "type": "card",
    "card_last_four": "4242",
    "card_brand": "visa",
    "display_card_number": "**** **** **** 4242",
}


class PaymentDispatchTests(SimpleTestCase):
    def test_cash_always_succeeds(self):
        result = dispatch("cash", Decimal("12.5"))

        self.assertTrue(result.success)
        self.assertEqual(result.data, {"cash_received": "12.50", "change_given": "0.00"})

    def test_card_approved_returns_masked_data(self):
        gateway = FixedCardGateway(approved=True, message="Payment approved")

        result = dispatch(
            "card",
            "30.00",
            CARD_METHOD,
            {"card_number": "4242424242424242"},
            card_gateway=gateway,
        )

        self.assertTrue(result.success)
        self.assertEqual(result.data["card_last_four"], "4242")
        self.assertEqual(result.data["authorization_code"], "AUTHTEST")
        self.assertNotIn("4242424242424242", str(result.data))
        self.assertEqual(len(gateway.calls), 1)

    def test_card_declined(self):
        gateway = FixedCardGateway(approved=False, message="Payment declined by bank")

        result = dispatch("card", "30.00", CARD_METHOD, card_gateway=gateway)

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Payment declined by bank")
        self.assertEqual(result.failure_code, FAILURE_DECLINED)

    def test_card_timeout_is_distinct_failure(self):
        gateway = HangingCardGateway()
        try:
            result = dispatch("card", "30.00", CARD_METHOD, card_gateway=gateway, timeout=0.05)
        finally:
            gateway.release.set()

        self.assertFalse(result.success)
        self.assertEqual(result.failure_code, FAILURE_TIMEOUT)

    def test_bank_transfer_reference(self):
        result = dispatch(
            "bank_transfer",
            "10.00",
            {"type": "bank_transfer", "bank_name": "First Bank", "account_last_four": "6789"},
        )

        self.assertTrue(result.success)
        self.assertTrue(result.data["bank_reference"].startswith("BT"))
        self.assertEqual(result.data["bank_reference"], result.data["bank_reference"].upper())
        self.assertEqual(result.data["bank_name"], "First Bank")
        self.assertEqual(result.data["account_last_four"], "6789")

    def test_wallet(self):
        gateway = FixedWalletGateway(approved=True)
        method = {"type": "digital_wallet", "wallet_provider": "orange_money", "phone_number": "+201000000000"}

        result = dispatch("digital_wallet", "8.00", method, wallet_gateway=gateway)

        self.assertTrue(result.success)
        self.assertEqual(result.data["wallet_provider"], "orange_money")
        self.assertEqual(result.data["gateway_transaction_id"], "WALLET-TEST")

    def test_wallet_failure(self):
        gateway = FixedWalletGateway(approved=False, message="Wallet transaction failed")
        result = dispatch("digital_wallet", "8.00", None, wallet_gateway=gateway)

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Wallet transaction failed")

    def test_unknown_type(self):
        with self.assertRaises(UnsupportedPaymentMethodError):
            dispatch("cheque", "1.00")

    @override_settings(PAYMENTS={"CARD_GATEWAY": "payments.tests.doubles.DeclinedCardGateway"})
    def test_gateway_resolved_from_settings(self):
        result = dispatch("card", "5.00", CARD_METHOD)
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Payment declined by bank")

    def test_default_gateway_approves(self):
        result = dispatch("card", "5.00", CARD_METHOD)
        self.assertTrue(result.success)
        self.assertTrue(result.data["authorization_code"].startswith("AUTH"))

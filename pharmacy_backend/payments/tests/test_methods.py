# payments/tests/test_methods.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from payments.models import StoredPaymentMethod
from payments.services import methods, vault
from sales.services.exceptions import PaymentMethodNotFoundError, ValidationError

User = get_user_model()

VISA = "4242 4242 4242 4242"


class StoredPaymentMethodServiceTests(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(email="owner@pharmacy.test", password="pass1234", role="admin")
        self.other = User.objects.create_user(email="other@pharmacy.test", password="pass1234")

    def _card(self, **kwargs):
        data = {
            "type": "card",
            "name": "Shop Visa",
            "card_number": VISA,
            "cvv": "123",
            "cardholder_name": "Jane Pharmacy",
            "card_expiry": "12/30",
        }
        data.update(kwargs)
        return methods.create_method(self.owner, **data)

    def test_card_secrets_are_never_stored_in_clear(self):
        method = self._card()

        self.assertEqual(method.card_last_four, "4242")
        self.assertEqual(method.card_brand, "visa")
        self.assertNotIn("4242424242424242", method.encrypted_card_number)
        self.assertNotEqual(method.hashed_cvv, "123")
        self.assertEqual(methods.reveal_card_number(method), "4242424242424242")

    def test_verify_cvv(self):
        method = self._card()
        self.assertTrue(methods.verify_cvv(method, "123"))
        self.assertFalse(methods.verify_cvv(method, "999"))

    def test_invalid_card_number_rejected(self):
        with self.assertRaises(ValidationError):
            self._card(card_number="4242 4242 4242 4241")

    def test_bank_account_is_encrypted(self):
        method = methods.create_method(
            self.owner,
            type="bank_transfer",
            name="Main account",
            account_number="0123456789",
            bank_name="First Bank",
            routing_number="021000021",
        )
        self.assertEqual(method.account_last_four, "6789")
        self.assertEqual(vault.decrypt(method.encrypted_account_number), "0123456789")

    def test_missing_required_fields_rejected(self):
        with self.assertRaises(ValidationError):
            methods.create_method(self.owner, type="digital_wallet", name="Wallet")

    def test_single_default_per_owner(self):
        first = self._card(is_default=True)
        second = methods.create_method(self.owner, type="cash", name="Till", is_default=True)

        first.refresh_from_db()
        self.assertFalse(first.is_default)
        self.assertTrue(second.is_default)

        methods.set_default(self.owner, first.pk)
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertTrue(first.is_default)
        self.assertFalse(second.is_default)

    def test_find_active_method_is_masked_and_scoped(self):
        method = self._card()
        display = methods.find_active_method(self.owner, method.pk)

        self.assertEqual(display["display_card_number"], "**** **** **** 4242")
        self.assertNotIn("encrypted_card_number", display)
        self.assertNotIn("hashed_cvv", display)

        with self.assertRaises(PaymentMethodNotFoundError):
            methods.find_active_method(self.other, method.pk)

    def test_soft_delete(self):
        method = self._card(is_default=True)
        methods.deactivate_method(self.owner, method.pk)

        method.refresh_from_db()
        self.assertFalse(method.is_active)
        self.assertFalse(method.is_default)
        with self.assertRaises(PaymentMethodNotFoundError):
            methods.find_active_method(self.owner, method.pk)

    def test_update_safe_fields(self):
        method = self._card()
        updated = methods.update_method(self.owner, method.pk, name="Renamed", card_expiry="01/31")
        self.assertEqual(updated.name, "Renamed")
        self.assertEqual(updated.card_expiry, "01/31")


class PaymentMethodApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(email="owner@pharmacy.test", password="pass1234", role="admin")
        self.client.force_authenticate(self.owner)

    def test_create_and_list(self):
        res = self.client.post(
            "/api/payment-methods/",
            {
                "type": "card",
                "name": "Visa",
                "card_number": VISA,
                "cvv": "123",
                "cardholder_name": "Jane",
                "card_expiry": "12/30",
                "is_default": True,
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["data"]["display_card_number"], "**** **** **** 4242")
        self.assertNotIn("card_number", res.data["data"])

        res = self.client.get("/api/payment-methods/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data["data"]), 1)

    def test_delete_unknown_method(self):
        res = self.client.delete("/api/payment-methods/00000000-0000-0000-0000-000000000000/")
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "PAYMENT_METHOD_NOT_FOUND")

    def test_set_default(self):
        method = StoredPaymentMethod.objects.create(owner=self.owner, type="cash", name="Till")
        res = self.client.post(f"/api/payment-methods/{method.pk}/default/")
        self.assertEqual(res.status_code, 200)
        method.refresh_from_db()
        self.assertTrue(method.is_default)

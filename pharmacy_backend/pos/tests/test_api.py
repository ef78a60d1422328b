# pos/tests/test_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from products.models import Medicine

User = get_user_model()


class CartApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(email="owner@pharmacy.test", password="pass1234", role="admin")
        self.cashier = User.objects.create_user(
            email="cashier@pharmacy.test", password="pass1234", role="cashier", pharmacy=self.owner
        )
        self.medicine = Medicine.objects.create(
            pharmacy=self.owner,
            name="Paracetamol 500mg",
            generic_name="Paracetamol",
            unit_price=Decimal("10.00"),
            quantity=50,
        )
        self.client.force_authenticate(self.cashier)

    def test_get_active_cart(self):
        res = self.client.get("/api/pos/cart/")

        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["success"])
        self.assertEqual(res.data["data"]["status"], "active")

    def test_add_and_update_item(self):
        res = self.client.post(
            "/api/pos/cart/items/add/",
            {"medicine_id": str(self.medicine.pk), "quantity": 2},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["total_amount"], "20.00")

        item_id = res.data["data"]["items"][0]["id"]
        res = self.client.patch(
            f"/api/pos/cart/items/{item_id}/update/", {"quantity": 0}, format="json"
        )
        self.assertEqual(res.status_code, 400)
        self.assertFalse(res.data["success"])
        self.assertEqual(res.data["error"]["code"], "INVALID_QUANTITY")

    def test_unknown_medicine_is_not_found(self):
        res = self.client.post(
            "/api/pos/cart/items/add/",
            {"medicine_id": "00000000-0000-0000-0000-000000000000", "quantity": 1},
            format="json",
        )
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "PRODUCT_NOT_FOUND")

    def test_discount_endpoint(self):
        self.client.post(
            "/api/pos/cart/items/add/",
            {"medicine_id": str(self.medicine.pk), "quantity": 3},
            format="json",
        )
        res = self.client.post(
            "/api/pos/cart/discount/", {"amount": "10", "type": "percentage"}, format="json"
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["final_amount"], "27.00")

    def test_carts_are_kept_per_transaction_type(self):
        self.client.post(
            "/api/pos/cart/items/add/",
            {"medicine_id": str(self.medicine.pk), "quantity": 1},
            format="json",
        )
        res = self.client.post(
            "/api/pos/cart/items/add/?transaction_type=return",
            {"medicine_id": str(self.medicine.pk), "quantity": 4},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["transaction_type"], "return")
        self.assertEqual(res.data["data"]["total_quantity"], 4)

        res = self.client.get("/api/pos/cart/")
        self.assertEqual(res.data["data"]["transaction_type"], "sale")
        self.assertEqual(res.data["data"]["total_quantity"], 1)

        res = self.client.get("/api/pos/cart/", {"transaction_type": "gift"})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "VALIDATION_ERROR")

    def test_anonymous_rejected(self):
        self.client.force_authenticate(None)
        res = self.client.get("/api/pos/cart/")
        self.assertEqual(res.status_code, 401)

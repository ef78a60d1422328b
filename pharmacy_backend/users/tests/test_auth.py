# users/tests/test_auth.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

User = get_user_model()


class UserModelTests(TestCase):
    def test_username_derived_from_email(self):
        first = User.objects.create_user(email="amina@pharmacy.test", password="pass1234")
        second = User.objects.create_user(email="amina@clinic.test", password="pass1234")

        self.assertEqual(first.username, "amina")
        self.assertEqual(second.username, "amina2")

    def test_pharmacy_account_resolves_owner(self):
        owner = User.objects.create_user(email="owner@pharmacy.test", password="pass1234", role="admin")
        cashier = User.objects.create_user(
            email="till@pharmacy.test", password="pass1234", role="cashier", pharmacy=owner
        )

        self.assertEqual(owner.pharmacy_account, owner)
        self.assertEqual(cashier.pharmacy_account, owner)

    def test_superuser_defaults_to_admin_role(self):
        admin = User.objects.create_superuser(email="root@pharmacy.test", password="pass1234")

        self.assertEqual(admin.role, "admin")
        self.assertTrue(admin.is_staff)


class AuthAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(email="owner@pharmacy.test", password="pass1234", role="admin")
        self.cashier = User.objects.create_user(
            email="till@pharmacy.test", password="pass1234", role="cashier", pharmacy=self.owner
        )

    def test_token_then_me(self):
        res = self.client.post(
            "/api/users/token/",
            {"email": "till@pharmacy.test", "password": "pass1234"},
            format="json",
        )
        self.assertEqual(res.status_code, 200)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {res.data['access']}")
        res = self.client.get("/api/users/me/")

        self.assertEqual(res.status_code, 200)
        data = res.json()["data"]
        self.assertEqual(data["role"], "cashier")
        self.assertEqual(data["pharmacy_id"], str(self.owner.pk))
        self.assertEqual(data["capabilities"], ["inventory.view", "pos.sell"])

    def test_wrong_password_rejected(self):
        res = self.client.post(
            "/api/users/token/",
            {"email": "till@pharmacy.test", "password": "nope"},
            format="json",
        )
        self.assertEqual(res.status_code, 401)

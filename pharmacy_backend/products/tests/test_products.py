# products/tests/test_products.py

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.test import TestCase
from django.utils import timezone

from products.models import Medicine

User = get_user_model()


class MedicineModelTests(TestCase):
    """
    Catalog row tests.

    GUARANTEES:
    - Medicines can be created safely
    - SKU uniqueness is enforced
    - Prices cannot go negative
    """

    def setUp(self):
        self.owner = User.objects.create_user(email="owner@pharmacy.test", password="pass1234")

    def _medicine(self, **kwargs):
        data = {
            "pharmacy": self.owner,
            "name": "Amoxicillin 250mg",
            "generic_name": "Amoxicillin",
            "unit_price": Decimal("250.00"),
            "quantity": 10,
        }
        data.update(kwargs)
        return Medicine.objects.create(**data)

    def test_medicine_creation(self):
        medicine = self._medicine(sku="AMX-250")

        self.assertEqual(medicine.name, "Amoxicillin 250mg")
        self.assertEqual(medicine.sku, "AMX-250")
        self.assertTrue(medicine.is_active)

    def test_sku_must_be_unique(self):
        self._medicine(sku="IBU-200", name="Ibuprofen")

        with self.assertRaises(IntegrityError):
            self._medicine(sku="IBU-200", name="Ibuprofen Duplicate")

    def test_negative_price_is_rejected_by_clean(self):
        medicine = Medicine(
            pharmacy=self.owner,
            name="Vitamin C",
            generic_name="Ascorbic acid",
            unit_price=Decimal("-1.00"),
        )
        with self.assertRaises(ValidationError):
            medicine.full_clean()

    def test_batch_number_is_upper_cased(self):
        medicine = self._medicine(
            batch_number=" lot-7a ",
            expiry_date=timezone.localdate() + timedelta(days=200),
        )
        self.assertEqual(medicine.batch_number, "LOT-7A")

    def test_low_stock_flag(self):
        medicine = self._medicine(quantity=3, low_stock_threshold=5)
        self.assertTrue(medicine.is_low_stock)

        medicine.quantity = 50
        self.assertFalse(medicine.is_low_stock)

    def test_string_representation(self):
        medicine = self._medicine(name="Cough Syrup", generic_name="Dextromethorphan")
        self.assertIn("Cough Syrup", str(medicine))

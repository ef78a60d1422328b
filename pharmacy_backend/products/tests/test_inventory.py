# products/tests/test_inventory.py

import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from products.models import Medicine
from products.services.inventory import (
    adjust_quantity,
    decrement_if_available,
    deduct_stock_for_sale,
    find_product,
    to_int_qty,
)
from sales.services.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    ProductNotFoundError,
)

User = get_user_model()


class InventoryServiceTests(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(email="owner@pharmacy.test", password="pass1234")
        self.other = User.objects.create_user(email="other@pharmacy.test", password="pass1234")

        self.paracetamol = Medicine.objects.create(
            pharmacy=self.owner,
            name="Paracetamol 500mg",
            generic_name="Paracetamol",
            unit_price=Decimal("10.00"),
            cost_price=Decimal("6.00"),
            quantity=5,
        )
        self.ors = Medicine.objects.create(
            pharmacy=self.owner,
            name="ORS Sachet",
            generic_name="Oral rehydration salts",
            unit_price=Decimal("5.00"),
            quantity=1,
        )

    # ---------------------------
    # Lookup
    # ---------------------------
    def test_find_product_scoped_to_owner(self):
        self.assertEqual(find_product(self.paracetamol.pk, owner=self.owner), self.paracetamol)

        with self.assertRaises(ProductNotFoundError):
            find_product(self.paracetamol.pk, owner=self.other)

    def test_find_product_rejects_malformed_and_unknown_refs(self):
        with self.assertRaises(ProductNotFoundError):
            find_product("not-a-uuid")
        with self.assertRaises(ProductNotFoundError):
            find_product(uuid.uuid4())

    def test_find_product_ignores_inactive_rows(self):
        self.ors.is_active = False
        self.ors.save()
        with self.assertRaises(ProductNotFoundError):
            find_product(self.ors.pk)

    # ---------------------------
    # Quantity parsing
    # ---------------------------
    def test_to_int_qty(self):
        self.assertEqual(to_int_qty(3), 3)
        self.assertEqual(to_int_qty(" 4 "), 4)
        for bad in (None, "", "1.5", 2.5, True):
            with self.assertRaises(InvalidQuantityError):
                to_int_qty(bad)

    # ---------------------------
    # Stock writes
    # ---------------------------
    def test_adjust_quantity_is_signed(self):
        self.assertEqual(adjust_quantity(self.paracetamol.pk, 3), 8)
        self.assertEqual(adjust_quantity(self.paracetamol.pk, -2), 6)

    def test_adjust_quantity_unknown_ref(self):
        with self.assertRaises(ProductNotFoundError):
            adjust_quantity(uuid.uuid4(), 1)

    def test_conditional_decrement(self):
        self.assertTrue(decrement_if_available(self.paracetamol.pk, 5))
        self.assertFalse(decrement_if_available(self.paracetamol.pk, 1))

        self.paracetamol.refresh_from_db()
        self.assertEqual(self.paracetamol.quantity, 0)

    def test_sale_deduction_is_all_or_nothing(self):
        lines = [
            (self.paracetamol.pk, 2, self.paracetamol.name),
            (self.ors.pk, 3, self.ors.name),
        ]

        with self.assertRaises(InsufficientStockError) as ctx:
            deduct_stock_for_sale(lines)

        self.assertEqual(ctx.exception.product_name, "ORS Sachet")
        self.assertEqual(ctx.exception.available, 1)

        self.paracetamol.refresh_from_db()
        self.ors.refresh_from_db()
        self.assertEqual(self.paracetamol.quantity, 5)
        self.assertEqual(self.ors.quantity, 1)

    def test_sale_deduction_success(self):
        deduct_stock_for_sale(
            [
                (self.paracetamol.pk, 2, self.paracetamol.name),
                (self.ors.pk, 1, self.ors.name),
            ]
        )
        self.paracetamol.refresh_from_db()
        self.ors.refresh_from_db()
        self.assertEqual(self.paracetamol.quantity, 3)
        self.assertEqual(self.ors.quantity, 0)

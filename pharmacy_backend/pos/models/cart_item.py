# pos/models/cart_item.py

"""
CART ITEM MODEL

- One line per medicine per cart (DB constraint); re-adding merges quantity.
- Prices and catalog fields are snapshots taken when the line is added.
- total_price is assigned on every save (see products.models.MedicineLineItem).
"""

import uuid

from django.db import models

from products.models import MedicineLineItem

from .cart import Cart


class CartItem(MedicineLineItem):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    cart = models.ForeignKey(
        Cart,
        on_delete=models.CASCADE,
        related_name="items",
    )

    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["added_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["cart", "medicine"],
                name="unique_medicine_per_cart",
            )
        ]

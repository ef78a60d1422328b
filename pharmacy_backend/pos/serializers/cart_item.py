"""
PATH: pos/serializers/cart_item.py

Cart line output. Prices and totals are server-side snapshots.
"""

from rest_framework import serializers

from pos.models import CartItem


class CartItemSerializer(serializers.ModelSerializer):
    medicine_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = CartItem
        fields = [
            "id",
            "medicine_id",
            "medicine_name",
            "generic_name",
            "form",
            "pack_size",
            "quantity",
            "unit_price",
            "total_price",
            "expiry_date",
            "batch_number",
            "manufacturer",
            "added_at",
        ]
        read_only_fields = fields

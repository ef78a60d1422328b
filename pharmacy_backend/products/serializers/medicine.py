# products/serializers/medicine.py

"""
MEDICINE SERIALIZERS

- MedicineSerializer: catalog CRUD for staff.
- StockAdjustSerializer: signed stock adjustment input (returns, corrections).

Stock is never written through MedicineSerializer; `quantity` is read-only here
and only moves through products.services.inventory.
"""

from rest_framework import serializers

from products.models import Medicine


class MedicineSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Medicine
        fields = [
            "id",
            "sku",
            "name",
            "generic_name",
            "form",
            "pack_size",
            "store",
            "unit_price",
            "cost_price",
            "quantity",
            "low_stock_threshold",
            "is_low_stock",
            "expiry_date",
            "batch_number",
            "manufacturer",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "quantity",
            "is_low_stock",
            "created_at",
            "updated_at",
        ]

    def validate_sku(self, value):
        value = (value or "").strip().upper()
        return value or None

    def validate_unit_price(self, value):
        if value is None or value < 0:
            raise serializers.ValidationError("Unit price must be non-negative")
        return value

    def validate_cost_price(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Cost price must be non-negative")
        return value


class StockAdjustSerializer(serializers.Serializer):
    delta = serializers.IntegerField()
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate_delta(self, value):
        if value == 0:
            raise serializers.ValidationError("delta must be non-zero")
        return value

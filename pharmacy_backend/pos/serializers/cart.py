# pos/serializers/cart.py

"""
CART SERIALIZERS

Output:
- CartSerializer: the cart with its lines and server-derived totals.

Input (request validation only):
- AddCartItemInputSerializer, UpdateCartItemInputSerializer,
  CartDiscountInputSerializer, CartTaxInputSerializer, CartDetailsInputSerializer
"""

from rest_framework import serializers

from pos.models import Cart

from .cart_item import CartItemSerializer


class CartSerializer(serializers.ModelSerializer):
    items = CartItemSerializer(many=True, read_only=True)
    discount_value = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    is_expired = serializers.SerializerMethodField()

    class Meta:
        model = Cart
        fields = [
            "id",
            "transaction_type",
            "status",
            "items",
            "total_amount",
            "total_items",
            "total_quantity",
            "discount_amount",
            "discount_type",
            "discount_reason",
            "discount_value",
            "tax_amount",
            "final_amount",
            "payment_method",
            "customer_name",
            "customer_phone",
            "customer_email",
            "description",
            "notes",
            "expires_at",
            "last_activity",
            "is_expired",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_is_expired(self, obj) -> bool:
        return obj.is_expired()


class AddCartItemInputSerializer(serializers.Serializer):
    medicine_id = serializers.UUIDField()
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    batch_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    expiry_date = serializers.DateField(required=False, allow_null=True)


class UpdateCartItemInputSerializer(serializers.Serializer):
    quantity = serializers.IntegerField()


class CartDiscountInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    type = serializers.ChoiceField(choices=[c[0] for c in Cart.DISCOUNT_TYPE_CHOICES], default="fixed")
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class CartTaxInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class CartDetailsInputSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    customer_phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    customer_email = serializers.EmailField(required=False, allow_blank=True)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)

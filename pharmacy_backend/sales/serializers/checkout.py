# sales/serializers/checkout.py

"""
Checkout / sale command serializers.

These serializers do NOT touch the database. They only validate request
shape; pricing, stock and payment rules live in the checkout orchestrator.
"""

from rest_framework import serializers

from payments.services.dispatch import PAYMENT_TYPES
from sales.models import Transaction


class CheckoutItemInputSerializer(serializers.Serializer):
    medicine_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    expiry_date = serializers.DateField(required=False, allow_null=True)
    batch_number = serializers.CharField(required=False, allow_blank=True, max_length=50)


class PaymentInputSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=PAYMENT_TYPES)
    method_id = serializers.UUIDField(required=False, allow_null=True)
    extra = serializers.DictField(required=False, default=dict)


class DeliveryInputSerializer(serializers.Serializer):
    option = serializers.ChoiceField(
        choices=[c[0] for c in Transaction.DELIVERY_OPTION_CHOICES], default="pickup"
    )
    address_id = serializers.UUIDField(required=False, allow_null=True)
    estimated_delivery = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=500)


class CustomerInputSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, max_length=100)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=30)
    email = serializers.EmailField(required=False, allow_blank=True)


class CheckoutInputSerializer(serializers.Serializer):
    """
    Cart / pending-transaction checkout.
    `transaction_id` (an existing draft) wins over the active cart.
    """

    transaction_type = serializers.ChoiceField(
        choices=[c[0] for c in Transaction.TRANSACTION_TYPE_CHOICES],
        default=Transaction.TYPE_SALE,
    )
    transaction_id = serializers.UUIDField(required=False, allow_null=True)
    payment = PaymentInputSerializer(required=False, allow_null=True)
    delivery = DeliveryInputSerializer(required=False)
    customer = CustomerInputSerializer(required=False)
    tax_rate = serializers.DecimalField(
        max_digits=6, decimal_places=4, min_value=0, max_value=1, required=False, allow_null=True
    )
    discount = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    description = serializers.CharField(required=False, allow_blank=True, max_length=500)
    notes = serializers.CharField(required=False, allow_blank=True)
    save_as_draft = serializers.BooleanField(default=False)
    is_prescription = serializers.BooleanField(default=False)
    branch_id = serializers.UUIDField(required=False, allow_null=True)


class QuickCheckoutInputSerializer(CheckoutInputSerializer):
    items = CheckoutItemInputSerializer(many=True, allow_empty=False)


class ProcessPaymentInputSerializer(serializers.Serializer):
    transaction_id = serializers.UUIDField()
    payment = PaymentInputSerializer()


class DeliveryOptionInputSerializer(serializers.Serializer):
    transaction_id = serializers.UUIDField()
    delivery_option = serializers.ChoiceField(
        choices=[c[0] for c in Transaction.DELIVERY_OPTION_CHOICES]
    )
    address_id = serializers.UUIDField(required=False, allow_null=True)


class CheckoutSummaryQuerySerializer(serializers.Serializer):
    transaction_type = serializers.ChoiceField(
        choices=[c[0] for c in Transaction.TRANSACTION_TYPE_CHOICES],
        default=Transaction.TYPE_SALE,
    )
    delivery_option = serializers.ChoiceField(
        choices=[c[0] for c in Transaction.DELIVERY_OPTION_CHOICES], default="pickup"
    )
    address_id = serializers.UUIDField(required=False, allow_null=True)
    tax_rate = serializers.DecimalField(
        max_digits=6, decimal_places=4, min_value=0, max_value=1, required=False, allow_null=True
    )

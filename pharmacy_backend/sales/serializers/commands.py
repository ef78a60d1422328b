# sales/serializers/commands.py

from decimal import Decimal

from rest_framework import serializers

from sales.models import Transaction, TransactionRefund


class RefundCommandSerializer(serializers.Serializer):
    """
    Command serializer for refund requests.

    The amount is a request; the service caps it at the remaining balance.
    """

    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.01"))
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)
    payment_method = serializers.ChoiceField(
        choices=[c[0] for c in TransactionRefund.REFUND_METHOD_CHOICES],
        required=False,
        allow_null=True,
    )
    notes = serializers.CharField(required=False, allow_blank=True)


class DeliveryStatusCommandSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[
            c[0]
            for c in Transaction.DELIVERY_STATUS_CHOICES
            if c[0] != Transaction.DELIVERY_NOT_APPLICABLE
        ]
    )
    notes = serializers.CharField(required=False, allow_blank=True, max_length=500)


class CancelCommandSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)

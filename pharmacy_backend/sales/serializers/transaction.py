# sales/serializers/transaction.py

from rest_framework import serializers

from sales.models import DeliveryAddress, Transaction, TransactionItem, TransactionRefund


class TransactionItemSerializer(serializers.ModelSerializer):
    """
    Transaction line (read-only snapshot).
    Designed for receipts + UI display.
    """

    class Meta:
        model = TransactionItem
        fields = [
            "id",
            "medicine",
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
        ]
        read_only_fields = fields


class TransactionRefundSerializer(serializers.ModelSerializer):
    class Meta:
        model = TransactionRefund
        fields = [
            "id",
            "refund_ref",
            "amount",
            "reason",
            "payment_method",
            "processed_by",
            "processed_at",
            "notes",
        ]
        read_only_fields = fields


class DeliveryAddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = DeliveryAddress
        fields = [
            "id",
            "label",
            "recipient_name",
            "phone",
            "line1",
            "line2",
            "city",
            "region",
            "postal_code",
        ]
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    """
    CANONICAL TRANSACTION SERIALIZER (read-only)

    Derived values (total_refunded, amount_due, is_paid, can_refund) are
    computed from the persisted rows, never stored.
    """

    items = TransactionItemSerializer(many=True, read_only=True)
    refunds = TransactionRefundSerializer(many=True, read_only=True)
    delivery_address = DeliveryAddressSerializer(read_only=True)

    total_refunded = serializers.SerializerMethodField()
    amount_due = serializers.SerializerMethodField()
    is_paid = serializers.BooleanField(read_only=True)
    can_refund = serializers.SerializerMethodField()

    class Meta:
        model = Transaction
        fields = [
            "id",
            "transaction_id",
            "transaction_number",
            "transaction_ref",
            "transaction_type",
            "sale_type",
            "status",
            "description",
            "notes",
            "branch",
            "items",
            "subtotal",
            "tax_rate",
            "tax",
            "discount",
            "delivery_fee",
            "total_amount",
            "profit",
            "margin_percentage",
            "customer_name",
            "customer_phone",
            "customer_email",
            "payment_method",
            "payment_method_ref",
            "payment_amount",
            "payment_status",
            "payment_details",
            "paid_at",
            "refunded_at",
            "refunds",
            "total_refunded",
            "amount_due",
            "is_paid",
            "can_refund",
            "delivery_option",
            "delivery_status",
            "delivery_address",
            "estimated_delivery",
            "actual_delivery",
            "delivery_notes",
            "is_prescription",
            "transaction_date",
            "created_by",
            "updated_by",
            "cancelled_by",
            "cancellation_reason",
            "cancelled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_total_refunded(self, obj):
        return str(obj.total_refunded)

    def get_amount_due(self, obj):
        return str(obj.amount_due)

    def get_can_refund(self, obj):
        return obj.can_refund()


class TransactionListSerializer(serializers.ModelSerializer):
    """Lightweight row for history tables."""

    item_count = serializers.IntegerField(source="items.count", read_only=True)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "transaction_number",
            "transaction_ref",
            "transaction_type",
            "sale_type",
            "status",
            "total_amount",
            "payment_method",
            "payment_status",
            "customer_name",
            "customer_phone",
            "delivery_option",
            "delivery_status",
            "item_count",
            "transaction_date",
        ]
        read_only_fields = fields

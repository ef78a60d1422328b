# payments/serializers.py

"""
Stored payment method serializers.

Input accepts raw instrument data (card number, CVV, account number) as
write-only fields; output is always the masked display representation.
"""

from rest_framework import serializers

from payments.models import StoredPaymentMethod


class StoredPaymentMethodSerializer(serializers.ModelSerializer):
    display_card_number = serializers.CharField(read_only=True)

    class Meta:
        model = StoredPaymentMethod
        fields = [
            "id",
            "type",
            "name",
            "is_default",
            "is_active",
            "card_last_four",
            "card_brand",
            "cardholder_name",
            "card_expiry",
            "display_card_number",
            "bank_name",
            "account_last_four",
            "routing_number",
            "wallet_provider",
            "phone_number",
            "wallet_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PaymentMethodCreateSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=[c[0] for c in StoredPaymentMethod.TYPE_CHOICES])
    name = serializers.CharField(max_length=100)
    is_default = serializers.BooleanField(default=False)

    card_number = serializers.CharField(max_length=32, required=False, write_only=True)
    cvv = serializers.CharField(max_length=4, required=False, write_only=True)
    cardholder_name = serializers.CharField(max_length=100, required=False)
    card_expiry = serializers.RegexField(r"^(0[1-9]|1[0-2])/\d{2}$", required=False)
    card_brand = serializers.ChoiceField(
        choices=[c[0] for c in StoredPaymentMethod.CARD_BRAND_CHOICES], required=False
    )

    account_number = serializers.CharField(max_length=34, required=False, write_only=True)
    bank_name = serializers.CharField(max_length=100, required=False)
    routing_number = serializers.CharField(max_length=34, required=False)
    iban = serializers.CharField(max_length=34, required=False)

    wallet_provider = serializers.ChoiceField(
        choices=[c[0] for c in StoredPaymentMethod.WALLET_PROVIDER_CHOICES], required=False
    )
    phone_number = serializers.RegexField(r"^\+?[\d\s\-()]{10,}$", required=False)
    wallet_id = serializers.CharField(max_length=100, required=False)

    def validate(self, attrs):
        method_type = attrs["type"]
        required = {
            "card": ("card_number", "cvv", "cardholder_name", "card_expiry"),
            "bank_transfer": ("account_number", "bank_name", "routing_number"),
            "digital_wallet": ("wallet_provider", "phone_number", "wallet_id"),
        }.get(method_type, ())
        missing = [f for f in required if not attrs.get(f)]
        if missing:
            raise serializers.ValidationError({f: "This field is required." for f in missing})
        return attrs


class PaymentMethodUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, required=False)
    is_default = serializers.BooleanField(required=False)
    cardholder_name = serializers.CharField(max_length=100, required=False)
    card_expiry = serializers.RegexField(r"^(0[1-9]|1[0-2])/\d{2}$", required=False)
    bank_name = serializers.CharField(max_length=100, required=False)
    routing_number = serializers.CharField(max_length=34, required=False)
    wallet_provider = serializers.ChoiceField(
        choices=[c[0] for c in StoredPaymentMethod.WALLET_PROVIDER_CHOICES], required=False
    )
    phone_number = serializers.RegexField(r"^\+?[\d\s\-()]{10,}$", required=False)
    wallet_id = serializers.CharField(max_length=100, required=False)

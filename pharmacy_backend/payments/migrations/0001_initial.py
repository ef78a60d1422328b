import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="StoredPaymentMethod",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("cash", "Cash"),
                            ("card", "Card"),
                            ("bank_transfer", "Bank transfer"),
                            ("digital_wallet", "Digital wallet"),
                        ],
                        max_length=20,
                    ),
                ),
                ("name", models.CharField(max_length=100)),
                ("is_default", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("card_last_four", models.CharField(blank=True, max_length=4)),
                (
                    "card_brand",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("visa", "Visa"),
                            ("mastercard", "Mastercard"),
                            ("amex", "American Express"),
                            ("discover", "Discover"),
                            ("other", "Other"),
                        ],
                        max_length=20,
                    ),
                ),
                ("cardholder_name", models.CharField(blank=True, max_length=100)),
                ("card_expiry", models.CharField(blank=True, help_text="MM/YY", max_length=7)),
                ("encrypted_card_number", models.TextField(blank=True, editable=False)),
                ("hashed_cvv", models.CharField(blank=True, editable=False, max_length=255)),
                ("bank_name", models.CharField(blank=True, max_length=100)),
                ("account_last_four", models.CharField(blank=True, max_length=4)),
                ("encrypted_account_number", models.TextField(blank=True, editable=False)),
                ("routing_number", models.CharField(blank=True, max_length=34)),
                ("iban", models.CharField(blank=True, max_length=34)),
                (
                    "wallet_provider",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("vodafone_cash", "Vodafone Cash"),
                            ("orange_money", "Orange Money"),
                            ("etisalat_cash", "Etisalat Cash"),
                            ("other", "Other"),
                        ],
                        max_length=20,
                    ),
                ),
                ("phone_number", models.CharField(blank=True, max_length=30)),
                ("wallet_id", models.CharField(blank=True, max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payment_methods",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-is_default", "-created_at"],
                "indexes": [
                    models.Index(fields=["owner", "is_active"], name="paymethod_owner_active_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_default", True)),
                        fields=("owner",),
                        name="one_default_payment_method_per_owner",
                    ),
                ],
            },
        ),
    ]

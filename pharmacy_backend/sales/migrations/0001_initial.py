import uuid
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("payments", "0001_initial"),
        ("products", "0001_initial"),
        ("store", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Sequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, unique=True)),
                ("value", models.PositiveBigIntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="DeliveryAddress",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("label", models.CharField(blank=True, help_text="e.g. Home, Clinic", max_length=50)),
                ("recipient_name", models.CharField(max_length=100)),
                ("phone", models.CharField(blank=True, max_length=30)),
                ("line1", models.CharField(max_length=255)),
                ("line2", models.CharField(blank=True, max_length=255)),
                ("city", models.CharField(max_length=100)),
                ("region", models.CharField(blank=True, max_length=100)),
                ("postal_code", models.CharField(blank=True, max_length=20)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="delivery_addresses",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "verbose_name_plural": "delivery addresses",
            },
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("sale", "Sale"),
                            ("purchase", "Purchase"),
                            ("return", "Return"),
                            ("adjustment", "Adjustment"),
                            ("transfer", "Transfer"),
                        ],
                        default="sale",
                        max_length=20,
                    ),
                ),
                (
                    "sale_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("full", "Full sale"),
                            ("per_medicine", "Per-medicine sale"),
                            ("quick", "Quick checkout"),
                            ("checkout", "Cart checkout"),
                        ],
                        max_length=20,
                    ),
                ),
                ("transaction_id", models.CharField(editable=False, max_length=40, unique=True)),
                ("transaction_number", models.CharField(editable=False, max_length=20, unique=True)),
                ("transaction_ref", models.CharField(editable=False, max_length=40, unique=True)),
                ("description", models.CharField(blank=True, max_length=500)),
                ("notes", models.TextField(blank=True)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("tax_rate", models.DecimalField(decimal_places=4, default=Decimal("0.0000"), max_digits=6)),
                ("tax", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("discount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("delivery_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("profit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("margin_percentage", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=7)),
                ("customer_name", models.CharField(blank=True, max_length=100)),
                ("customer_phone", models.CharField(blank=True, max_length=30)),
                ("customer_email", models.EmailField(blank=True, max_length=254)),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("cash", "Cash"),
                            ("card", "Card"),
                            ("bank_transfer", "Bank transfer"),
                            ("digital_wallet", "Digital wallet"),
                        ],
                        max_length=20,
                    ),
                ),
                ("payment_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                            ("refunded", "Refunded"),
                            ("partially_refunded", "Partially refunded"),
                            ("authorized", "Authorized"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "payment_details",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Method-specific, masked payment data (authorization code, bank reference, ...).",
                    ),
                ),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("failed_at", models.DateTimeField(blank=True, null=True)),
                ("refunded_at", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("pending", "Pending"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                            ("refunded", "Refunded"),
                            ("partially_refunded", "Partially refunded"),
                            ("on_hold", "On hold"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("transaction_date", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "delivery_option",
                    models.CharField(
                        choices=[("pickup", "Pickup"), ("delivery", "Delivery"), ("shipping", "Shipping")],
                        default="pickup",
                        max_length=20,
                    ),
                ),
                (
                    "delivery_status",
                    models.CharField(
                        choices=[
                            ("not_applicable", "Not applicable"),
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("preparing", "Preparing"),
                            ("out_for_delivery", "Out for delivery"),
                            ("delivered", "Delivered"),
                            ("cancelled", "Cancelled"),
                            ("failed", "Failed"),
                        ],
                        default="not_applicable",
                        max_length=20,
                    ),
                ),
                ("estimated_delivery", models.DateTimeField(blank=True, null=True)),
                ("actual_delivery", models.DateTimeField(blank=True, null=True)),
                ("delivery_notes", models.CharField(blank=True, max_length=500)),
                ("is_prescription", models.BooleanField(default=False)),
                ("cancellation_reason", models.CharField(blank=True, max_length=500)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        help_text="Pharmacy account the transaction belongs to.",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="pharmacy_transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "branch",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to="store.store",
                    ),
                ),
                (
                    "payment_method_ref",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to="payments.storedpaymentmethod",
                    ),
                ),
                (
                    "delivery_address",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to="sales.deliveryaddress",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions_updated",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "cancelled_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions_cancelled",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-transaction_date"],
                "indexes": [
                    models.Index(fields=["owner", "-transaction_date"], name="txn_owner_date_idx"),
                    models.Index(fields=["owner", "status", "-transaction_date"], name="txn_owner_status_date_idx"),
                    models.Index(fields=["owner", "transaction_type", "-created_at"], name="txn_owner_type_created_idx"),
                    models.Index(fields=["payment_status", "-transaction_date"], name="txn_payment_status_date_idx"),
                    models.Index(fields=["delivery_status", "estimated_delivery"], name="txn_delivery_status_eta_idx"),
                    models.Index(fields=["customer_phone", "-transaction_date"], name="txn_customer_phone_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("total_amount__gte", 0)),
                        name="transaction_total_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("payment_amount__lte", models.F("total_amount"))),
                        name="transaction_payment_within_total",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="TransactionItem",
            fields=[
                ("medicine_name", models.CharField(max_length=200)),
                ("generic_name", models.CharField(max_length=200)),
                ("form", models.CharField(blank=True, max_length=50)),
                ("pack_size", models.CharField(blank=True, max_length=50)),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "total_price",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=14),
                ),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("batch_number", models.CharField(blank=True, max_length=50)),
                ("manufacturer", models.CharField(blank=True, max_length=100)),
                (
                    "cost_price",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Unit cost snapshot used for profit calculation.",
                        max_digits=12,
                        null=True,
                    ),
                ),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "medicine",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sales_transactionitem_lines",
                        to="products.medicine",
                    ),
                ),
                (
                    "transaction",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="sales.transaction",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["transaction", "created_at"], name="txn_item_txn_created_idx"),
                    models.Index(fields=["medicine", "created_at"], name="txn_item_medicine_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TransactionRefund",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("refund_ref", models.CharField(editable=False, max_length=40, unique=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("reason", models.CharField(blank=True, max_length=500)),
                (
                    "payment_method",
                    models.CharField(
                        choices=[
                            ("cash", "Cash"),
                            ("card", "Card"),
                            ("bank_transfer", "Bank transfer"),
                            ("digital_wallet", "Digital wallet"),
                            ("credit_note", "Credit note"),
                        ],
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("processed_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "processed_by",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transaction_refunds",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "transaction",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="refunds",
                        to="sales.transaction",
                    ),
                ),
            ],
            options={
                "ordering": ["processed_at"],
                "indexes": [
                    models.Index(fields=["transaction", "processed_at"], name="txn_refund_txn_processed_idx"),
                ],
            },
        ),
    ]

import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("store", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Medicine",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("sku", models.CharField(blank=True, max_length=128, null=True, unique=True)),
                ("name", models.CharField(db_index=True, max_length=200)),
                ("generic_name", models.CharField(max_length=200)),
                ("form", models.CharField(blank=True, max_length=50)),
                ("pack_size", models.CharField(blank=True, max_length=50)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("cost_price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("quantity", models.IntegerField(default=0, help_text="On-hand stock units")),
                ("low_stock_threshold", models.PositiveIntegerField(default=10)),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("batch_number", models.CharField(blank=True, max_length=50)),
                ("manufacturer", models.CharField(blank=True, max_length=100)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "pharmacy",
                    models.ForeignKey(
                        blank=True,
                        help_text="Owning pharmacy account.",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="medicines",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="medicines",
                        to="store.store",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["pharmacy", "name"], name="medicine_pharmacy_name_idx"),
                    models.Index(fields=["generic_name"], name="medicine_generic_name_idx"),
                ],
            },
        ),
    ]

# products/admin.py

"""
Catalog admin.

Stock quantity is read-only here; it moves through the inventory service
(sales, signed adjustments).
"""

from django.contrib import admin

from products.models import Medicine


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "generic_name",
        "pharmacy",
        "unit_price",
        "quantity",
        "expiry_date",
        "is_active",
    )
    list_filter = ("is_active", "form")
    search_fields = ("name", "generic_name", "sku", "batch_number")
    readonly_fields = ("quantity", "created_at", "updated_at")
    raw_id_fields = ("pharmacy", "store")

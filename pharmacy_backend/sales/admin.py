# sales/admin.py

from django.contrib import admin

from sales.models import DeliveryAddress, Sequence, Transaction, TransactionItem, TransactionRefund


# ======================================================
# TRANSACTION ADMIN
# ======================================================


class TransactionItemInline(admin.TabularInline):
    model = TransactionItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "medicine",
        "medicine_name",
        "quantity",
        "unit_price",
        "total_price",
        "cost_price",
        "batch_number",
        "expiry_date",
    )
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


class TransactionRefundInline(admin.TabularInline):
    model = TransactionRefund
    extra = 0
    can_delete = False
    readonly_fields = ("refund_ref", "amount", "payment_method", "reason", "processed_by", "processed_at")
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = (
        "transaction_number",
        "transaction_type",
        "status",
        "payment_status",
        "total_amount",
        "delivery_status",
        "transaction_date",
    )
    readonly_fields = (
        "transaction_id",
        "transaction_number",
        "transaction_ref",
        "subtotal",
        "tax",
        "discount",
        "delivery_fee",
        "total_amount",
        "payment_amount",
        "profit",
        "margin_percentage",
        "paid_at",
        "refunded_at",
        "created_at",
        "updated_at",
    )
    search_fields = ("transaction_number", "transaction_ref", "transaction_id", "customer_name", "customer_phone")
    list_filter = ("transaction_type", "status", "payment_status", "delivery_status", "transaction_date")
    inlines = [TransactionItemInline, TransactionRefundInline]

    def has_delete_permission(self, request, obj=None):
        return False


# ======================================================
# SUPPORTING TABLES
# ======================================================


@admin.register(DeliveryAddress)
class DeliveryAddressAdmin(admin.ModelAdmin):
    list_display = ("recipient_name", "city", "owner", "is_active")
    search_fields = ("recipient_name", "line1", "city", "phone")
    list_filter = ("is_active",)


@admin.register(Sequence)
class SequenceAdmin(admin.ModelAdmin):
    list_display = ("name", "value", "updated_at")
    readonly_fields = ("name", "value", "updated_at")

from django.contrib import admin

from .models import Cart, CartItem

# =====================================================
# CART ITEM INLINE (READ-ONLY)
# =====================================================


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "medicine",
        "medicine_name",
        "quantity",
        "unit_price",
        "total_price",
        "added_at",
    )
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


# =====================================================
# CART ADMIN
# =====================================================


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "status",
        "total_items",
        "final_amount",
        "expires_at",
    )
    list_filter = ("status", "transaction_type")
    search_fields = ("id", "user__email", "customer_name")
    readonly_fields = (
        "total_amount",
        "total_items",
        "total_quantity",
        "final_amount",
        "last_activity",
        "created_at",
        "updated_at",
    )
    inlines = [CartItemInline]

from django.contrib import admin

from payments.models import StoredPaymentMethod


@admin.register(StoredPaymentMethod)
class StoredPaymentMethodAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "owner", "is_default", "is_active", "created_at")
    list_filter = ("type", "is_active", "is_default")
    search_fields = ("name", "owner__email", "card_last_four", "account_last_four")
    exclude = ("encrypted_card_number", "hashed_cvv", "encrypted_account_number")
    readonly_fields = ("card_last_four", "account_last_four", "created_at", "updated_at")

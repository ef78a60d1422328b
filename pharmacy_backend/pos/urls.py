"""
PATH: pos/urls.py

POS cart lifecycle + line operations. Checkout lives under /api/checkout/.
"""

from django.urls import path

from pos.views.api import (
    AbandonCartView,
    ActiveCartView,
    AddCartItemView,
    CartDetailsView,
    CartDiscountView,
    CartTaxView,
    ClearCartView,
    RemoveCartItemView,
    UpdateCartItemView,
)

app_name = "pos"

urlpatterns = [
    path("cart/", ActiveCartView.as_view(), name="active-cart"),
    path("cart/clear/", ClearCartView.as_view(), name="clear-cart"),
    path("cart/discount/", CartDiscountView.as_view(), name="cart-discount"),
    path("cart/tax/", CartTaxView.as_view(), name="cart-tax"),
    path("cart/details/", CartDetailsView.as_view(), name="cart-details"),
    path("cart/abandon/", AbandonCartView.as_view(), name="abandon-cart"),

    path("cart/items/add/", AddCartItemView.as_view(), name="add-cart-item"),
    path("cart/items/<uuid:item_id>/update/", UpdateCartItemView.as_view(), name="update-cart-item"),
    path("cart/items/<uuid:item_id>/remove/", RemoveCartItemView.as_view(), name="remove-cart-item"),
]

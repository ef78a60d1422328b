# sales/api/checkout_urls.py

"""
CHECKOUT API URLS

Mounted at /api/checkout/.
"""

from django.urls import path

from sales.views.checkout import (
    CheckoutSummaryView,
    DeliveryOptionView,
    ProcessCheckoutView,
    ProcessPaymentView,
    QuickCheckoutView,
)

urlpatterns = [
    path("process/", ProcessCheckoutView.as_view(), name="checkout-process"),
    path("quick/", QuickCheckoutView.as_view(), name="checkout-quick"),
    path("payment/", ProcessPaymentView.as_view(), name="checkout-payment"),
    path("summary/", CheckoutSummaryView.as_view(), name="checkout-summary"),
    path("delivery-option/", DeliveryOptionView.as_view(), name="checkout-delivery-option"),
]

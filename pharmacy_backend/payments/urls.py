# payments/urls.py

from django.urls import path

from payments.views import (
    PaymentMethodDefaultView,
    PaymentMethodDetailView,
    PaymentMethodListCreateView,
)

app_name = "payments"

urlpatterns = [
    path("", PaymentMethodListCreateView.as_view(), name="list-create"),
    path("<uuid:method_id>/", PaymentMethodDetailView.as_view(), name="detail"),
    path("<uuid:method_id>/default/", PaymentMethodDefaultView.as_view(), name="set-default"),
]

# sales/api/urls.py

"""
SALES API URLS (CANONICAL)

Mounted at /api/sales/:
    POST /api/sales/full-sale/
    POST /api/sales/per-medicine-sale/
    GET  /api/sales/transactions/
    GET  /api/sales/transactions/<uuid>/
    POST /api/sales/transactions/<uuid>/refund/
    POST /api/sales/transactions/<uuid>/delivery-status/
    POST /api/sales/transactions/<uuid>/cancel/
    GET  /api/sales/statistics/
    GET  /api/sales/dashboard/
"""

from django.urls import path

from sales.views.refund import CancelTransactionView, DeliveryStatusView, TransactionRefundView
from sales.views.reports import (
    SaleStatisticsView,
    SalesDashboardView,
    TransactionDetailView,
    TransactionListView,
)
from sales.views.sale import FullSaleView, PerMedicineSaleView

urlpatterns = [
    path("full-sale/", FullSaleView.as_view(), name="sales-full-sale"),
    path("per-medicine-sale/", PerMedicineSaleView.as_view(), name="sales-per-medicine-sale"),

    path("transactions/", TransactionListView.as_view(), name="sales-transactions"),
    path("transactions/<uuid:transaction_id>/", TransactionDetailView.as_view(), name="sales-transaction-detail"),
    path("transactions/<uuid:transaction_id>/refund/", TransactionRefundView.as_view(), name="sales-transaction-refund"),
    path(
        "transactions/<uuid:transaction_id>/delivery-status/",
        DeliveryStatusView.as_view(),
        name="sales-transaction-delivery-status",
    ),
    path("transactions/<uuid:transaction_id>/cancel/", CancelTransactionView.as_view(), name="sales-transaction-cancel"),

    path("statistics/", SaleStatisticsView.as_view(), name="sales-statistics"),
    path("dashboard/", SalesDashboardView.as_view(), name="sales-dashboard"),
]

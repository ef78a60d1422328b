# sales/views/sale.py

"""
SALE ENTRY VIEWS

- POST /api/sales/full-sale/          sell the whole active cart
- POST /api/sales/per-medicine-sale/  sell an explicit list of medicines

Both are completed checkouts (never drafts) recorded with their sale_type.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import serializers

from sales.api.responses import handles_domain_errors
from sales.serializers import CheckoutInputSerializer, QuickCheckoutInputSerializer, TransactionSerializer
from sales.services import checkout_orchestrator

from .checkout import CheckoutAPIView, checkout_kwargs, transaction_created


class FullSaleInputSerializer(CheckoutInputSerializer):
    save_as_draft = serializers.HiddenField(default=False)
    transaction_id = serializers.HiddenField(default=None)


class PerMedicineSaleInputSerializer(QuickCheckoutInputSerializer):
    save_as_draft = serializers.HiddenField(default=False)
    transaction_id = serializers.HiddenField(default=None)


class FullSaleView(CheckoutAPIView):
    @extend_schema(request=FullSaleInputSerializer, responses={201: TransactionSerializer})
    @handles_domain_errors
    def post(self, request):
        ser = FullSaleInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        txn = checkout_orchestrator.checkout(
            **checkout_kwargs(request, data),
            sale_type="full",
        )
        return transaction_created(txn, draft=False)


class PerMedicineSaleView(CheckoutAPIView):
    @extend_schema(request=PerMedicineSaleInputSerializer, responses={201: TransactionSerializer})
    @handles_domain_errors
    def post(self, request):
        ser = PerMedicineSaleInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        txn = checkout_orchestrator.checkout(
            **checkout_kwargs(request, data),
            items=data["items"],
            sale_type="per_medicine",
        )
        return transaction_created(txn, draft=False)

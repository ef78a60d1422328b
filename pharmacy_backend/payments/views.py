# payments/views.py

"""
STORED PAYMENT METHOD API

GET    /api/payment-methods/                 list active methods (default first)
POST   /api/payment-methods/                 create
PATCH  /api/payment-methods/<id>/            update non-secret fields / default flag
DELETE /api/payment-methods/<id>/            soft delete
POST   /api/payment-methods/<id>/default/    make default

Methods belong to the caller's pharmacy account.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from payments.serializers import (
    PaymentMethodCreateSerializer,
    PaymentMethodUpdateSerializer,
    StoredPaymentMethodSerializer,
)
from payments.services import methods
from permissions.roles import CAP_POS_SELL, HasCapability
from sales.api.responses import handles_domain_errors, success_response


class PaymentMethodBaseView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_POS_SELL
    serializer_class = StoredPaymentMethodSerializer

    def owner(self, request):
        return request.user.pharmacy_account


class PaymentMethodListCreateView(PaymentMethodBaseView):
    @extend_schema(responses={200: StoredPaymentMethodSerializer(many=True)})
    @handles_domain_errors
    def get(self, request):
        qs = methods.list_methods(self.owner(request))
        return success_response(StoredPaymentMethodSerializer(qs, many=True).data)

    @extend_schema(request=PaymentMethodCreateSerializer, responses={201: StoredPaymentMethodSerializer})
    @handles_domain_errors
    def post(self, request):
        ser = PaymentMethodCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        method = methods.create_method(self.owner(request), **ser.validated_data)
        return success_response(
            StoredPaymentMethodSerializer(method).data,
            message="Payment method added successfully",
            http_status=status.HTTP_201_CREATED,
        )


class PaymentMethodDetailView(PaymentMethodBaseView):
    @extend_schema(request=PaymentMethodUpdateSerializer, responses={200: StoredPaymentMethodSerializer})
    @handles_domain_errors
    def patch(self, request, method_id):
        ser = PaymentMethodUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        method = methods.update_method(self.owner(request), method_id, **ser.validated_data)
        return success_response(
            StoredPaymentMethodSerializer(method).data,
            message="Payment method updated successfully",
        )

    @extend_schema(responses={200: None})
    @handles_domain_errors
    def delete(self, request, method_id):
        methods.deactivate_method(self.owner(request), method_id)
        return success_response(None, message="Payment method deleted successfully")


class PaymentMethodDefaultView(PaymentMethodBaseView):
    @extend_schema(request=None, responses={200: StoredPaymentMethodSerializer})
    @handles_domain_errors
    def post(self, request, method_id):
        method = methods.set_default(self.owner(request), method_id)
        return success_response(
            StoredPaymentMethodSerializer(method).data,
            message="Default payment method updated successfully",
        )

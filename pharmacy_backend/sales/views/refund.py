# sales/views/refund.py

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from permissions.roles import (
    CAP_DELIVERY_MANAGE,
    CAP_POS_CANCEL,
    CAP_POS_REFUND,
    HasCapability,
)
from sales.api.responses import handles_domain_errors, success_response
from sales.serializers import (
    CancelCommandSerializer,
    DeliveryStatusCommandSerializer,
    RefundCommandSerializer,
    TransactionSerializer,
)
from sales.services.refund_service import refund_transaction
from sales.services.transaction_lifecycle import cancel_transaction, update_delivery_status


# ======================================================
# REFUND (money refund, append-only)
# ======================================================

class TransactionRefundView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_POS_REFUND

    @extend_schema(
        request=RefundCommandSerializer,
        responses={200: TransactionSerializer},
        description="Refund part or all of a completed transaction. Amounts above the remaining balance are capped.",
    )
    @handles_domain_errors
    def post(self, request, transaction_id):
        ser = RefundCommandSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        txn, refunded = refund_transaction(
            transaction_id,
            amount=data["amount"],
            user=request.user,
            owner=request.user.pharmacy_account,
            reason=data.get("reason", ""),
            payment_method=data.get("payment_method"),
            notes=data.get("notes", ""),
        )
        payload = TransactionSerializer(txn).data
        payload["refund_amount"] = str(refunded)
        return success_response(payload, message=f"Refunded {refunded}")


# ======================================================
# DELIVERY STATUS
# ======================================================

class DeliveryStatusView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_DELIVERY_MANAGE

    @extend_schema(request=DeliveryStatusCommandSerializer, responses={200: TransactionSerializer})
    @handles_domain_errors
    def post(self, request, transaction_id):
        ser = DeliveryStatusCommandSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        txn = update_delivery_status(
            transaction_id,
            new_status=data["status"],
            user=request.user,
            owner=request.user.pharmacy_account,
            notes=data.get("notes", ""),
        )
        return success_response(TransactionSerializer(txn).data, message="Delivery status updated")


# ======================================================
# CANCEL (unfinished transactions only)
# ======================================================

class CancelTransactionView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_POS_CANCEL

    @extend_schema(request=CancelCommandSerializer, responses={200: TransactionSerializer})
    @handles_domain_errors
    def post(self, request, transaction_id):
        ser = CancelCommandSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        txn = cancel_transaction(
            transaction_id,
            user=request.user,
            owner=request.user.pharmacy_account,
            reason=ser.validated_data.get("reason", ""),
        )
        return success_response(TransactionSerializer(txn).data, message="Transaction cancelled")

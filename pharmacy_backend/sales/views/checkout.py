# sales/views/checkout.py

"""
CHECKOUT API VIEWS

Endpoints:
- POST /api/checkout/process/          cart or draft -> transaction
- POST /api/checkout/quick/            explicit items -> transaction
- POST /api/checkout/payment/          pay an existing draft / pending transaction
- GET  /api/checkout/summary/          totals preview (nothing is written)
- POST /api/checkout/delivery-option/  change delivery on a draft / pending transaction

Hard rules:
- Totals, stock and payment are decided by the checkout orchestrator.
- Every response uses the {"success", "data" | "error", "message"} contract.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from permissions.roles import CAP_POS_SELL, HasCapability
from sales.api.responses import handles_domain_errors, success_response
from sales.serializers import (
    CheckoutInputSerializer,
    CheckoutSummaryQuerySerializer,
    DeliveryOptionInputSerializer,
    ProcessPaymentInputSerializer,
    QuickCheckoutInputSerializer,
    TransactionSerializer,
)
from sales.services import checkout_orchestrator
from sales.services.exceptions import NotFoundError
from store.models import Store


def resolve_branch(owner, branch_id):
    if not branch_id:
        return None
    try:
        branch = Store.objects.filter(pk=branch_id, pharmacy=owner).first()
    except (DjangoValidationError, ValueError):
        branch = None
    if branch is None:
        raise NotFoundError(f"Branch {branch_id} not found")
    return branch


def checkout_kwargs(request, data: dict) -> dict:
    """Map validated checkout input onto orchestrator keyword arguments."""
    owner = request.user.pharmacy_account
    return {
        "user": request.user,
        "owner": owner,
        "transaction_type": data.get("transaction_type", "sale"),
        "payment": data.get("payment"),
        "delivery": data.get("delivery"),
        "customer": data.get("customer"),
        "tax_rate": data.get("tax_rate"),
        "discount": data.get("discount"),
        "description": data.get("description", ""),
        "notes": data.get("notes", ""),
        "save_as_draft": data.get("save_as_draft", False),
        "is_prescription": data.get("is_prescription", False),
        "branch": resolve_branch(owner, data.get("branch_id")),
    }


def transaction_created(txn, *, draft: bool):
    return success_response(
        TransactionSerializer(txn).data,
        message="Transaction saved as draft" if draft else "Transaction completed successfully",
        http_status=status.HTTP_201_CREATED,
    )


class CheckoutAPIView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_POS_SELL


class ProcessCheckoutView(CheckoutAPIView):
    @extend_schema(
        request=CheckoutInputSerializer,
        responses={201: TransactionSerializer},
        description="Check out the active cart (or an existing draft) with payment and delivery options",
    )
    @handles_domain_errors
    def post(self, request):
        ser = CheckoutInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        txn = checkout_orchestrator.checkout(
            **checkout_kwargs(request, data),
            transaction_pk=data.get("transaction_id"),
        )
        return transaction_created(txn, draft=data["save_as_draft"])


class QuickCheckoutView(CheckoutAPIView):
    @extend_schema(
        request=QuickCheckoutInputSerializer,
        responses={201: TransactionSerializer},
        description="Sell an explicit list of medicines without a cart",
    )
    @handles_domain_errors
    def post(self, request):
        ser = QuickCheckoutInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        txn = checkout_orchestrator.checkout(
            **checkout_kwargs(request, data),
            items=data["items"],
            sale_type="quick",
        )
        return transaction_created(txn, draft=data["save_as_draft"])


class ProcessPaymentView(CheckoutAPIView):
    @extend_schema(request=ProcessPaymentInputSerializer, responses={200: TransactionSerializer})
    @handles_domain_errors
    def post(self, request):
        ser = ProcessPaymentInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        txn = checkout_orchestrator.process_payment(
            data["transaction_id"],
            user=request.user,
            payment=data["payment"],
        )
        return success_response(TransactionSerializer(txn).data, message="Payment processed successfully")


class CheckoutSummaryView(CheckoutAPIView):
    @extend_schema(parameters=[CheckoutSummaryQuerySerializer])
    @handles_domain_errors
    def get(self, request):
        ser = CheckoutSummaryQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        summary = checkout_orchestrator.checkout_summary(
            user=request.user,
            transaction_type=data["transaction_type"],
            delivery_option=data["delivery_option"],
            address_ref=data.get("address_id"),
            tax_rate=data.get("tax_rate"),
        )
        return success_response(summary)


class DeliveryOptionView(CheckoutAPIView):
    @extend_schema(request=DeliveryOptionInputSerializer, responses={200: TransactionSerializer})
    @handles_domain_errors
    def post(self, request):
        ser = DeliveryOptionInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        txn = checkout_orchestrator.update_delivery_option(
            data["transaction_id"],
            user=request.user,
            delivery_option=data["delivery_option"],
            address_ref=data.get("address_id"),
        )
        return success_response(TransactionSerializer(txn).data, message="Delivery option updated successfully")

# products/views/medicine.py

"""
MEDICINE VIEWSET

Staff catalog endpoints, scoped to the caller's pharmacy:
- CRUD (inventory.edit for writes)
- ?q= search on name / generic name / SKU
- ?form= / ?manufacturer= / ?store= exact filters (django-filter)
- GET  alerts/low-stock/
- POST <id>/adjust-stock/  (inventory.adjust)
"""

import logging

from django.db.models import F, Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from permissions.roles import (
    CAP_INVENTORY_ADJUST,
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_VIEW,
    HasCapability,
)
from products.models import Medicine
from products.serializers import MedicineSerializer, StockAdjustSerializer
from products.services.inventory import adjust_quantity

logger = logging.getLogger(__name__)


class MedicineViewSet(viewsets.ModelViewSet):
    serializer_class = MedicineSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    filterset_fields = ["form", "manufacturer", "store"]

    @property
    def required_capability(self):
        if self.action in ("list", "retrieve", "low_stock"):
            return CAP_INVENTORY_VIEW
        if self.action == "adjust_stock":
            return CAP_INVENTORY_ADJUST
        return CAP_INVENTORY_EDIT

    def get_queryset(self):
        qs = Medicine.objects.filter(pharmacy=self.request.user.pharmacy_account)

        include_inactive = (
            self.request.query_params.get("include_inactive") or ""
        ).strip().lower() in ("1", "true", "yes")
        if not include_inactive:
            qs = qs.filter(is_active=True)

        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(
                Q(name__icontains=q) | Q(generic_name__icontains=q) | Q(sku__icontains=q)
            )
        return qs.order_by("name")

    def perform_create(self, serializer):
        serializer.save(pharmacy=self.request.user.pharmacy_account)

    def perform_destroy(self, instance):
        # Soft delete: historical line items keep pointing at the row.
        instance.is_active = False
        instance.save(update_fields=["is_active", "updated_at"])

    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="threshold",
                type=int,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Override each medicine's own low_stock_threshold.",
            )
        ],
        responses={200: MedicineSerializer(many=True)},
    )
    @action(detail=False, methods=["get"], url_path="alerts/low-stock")
    def low_stock(self, request):
        qs = self.get_queryset()

        raw_threshold = (request.query_params.get("threshold") or "").strip()
        if raw_threshold:
            try:
                threshold = int(raw_threshold)
                if threshold < 0:
                    raise ValueError
            except ValueError:
                return Response(
                    {"detail": "threshold must be a non-negative integer"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            qs = qs.filter(quantity__lte=threshold)
        else:
            qs = qs.filter(quantity__lte=F("low_stock_threshold"))

        data = self.get_serializer(qs, many=True).data
        return Response({"count": len(data), "results": data})

    @extend_schema(request=StockAdjustSerializer, responses={200: MedicineSerializer})
    @action(detail=True, methods=["post"], url_path="adjust-stock")
    def adjust_stock(self, request, pk=None):
        medicine = self.get_object()

        ser = StockAdjustSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        delta = ser.validated_data["delta"]

        if medicine.quantity + delta < 0:
            return Response(
                {"detail": f"Adjustment would make stock negative (on hand: {medicine.quantity})"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        adjust_quantity(medicine.pk, delta)
        logger.info(
            "Manual stock adjustment",
            extra={
                "medicine_id": str(medicine.pk),
                "delta": delta,
                "reason": ser.validated_data.get("reason", ""),
                "user_id": str(request.user.pk),
            },
        )

        medicine.refresh_from_db()
        return Response(self.get_serializer(medicine).data)

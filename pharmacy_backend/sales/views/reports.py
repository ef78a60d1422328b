# sales/views/reports.py

"""
PATH: sales/views/reports.py

TRANSACTION HISTORY + SALES REPORTS

- GET /api/sales/transactions/            search + filter + pagination
- GET /api/sales/transactions/<id>/       full transaction (items, refunds, delivery)
- GET /api/sales/statistics/?period=      trend + payment / sale-type distribution
- GET /api/sales/dashboard/?period=       overview, recent, top medicines, by hour

Filters (transactions):
- q: transaction number / ref / description / customer / medicine name
- status, sale_type, payment_method, transaction_type (default: sale)
- date_from / date_to: YYYY-MM-DD, on transaction_date
- branch: id of one of the pharmacy's branches (also on statistics + dashboard)
"""

from __future__ import annotations

from datetime import datetime, time, timedelta

from django.db.models import Q
from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from permissions.roles import (
    CAP_POS_SELL,
    CAP_REPORTS_VIEW_POS,
    HasAnyCapability,
    HasCapability,
)
from sales.api.responses import error_response, handles_domain_errors, success_response
from sales.models import Transaction
from sales.serializers import TransactionListSerializer, TransactionSerializer
from sales.views.checkout import resolve_branch
from sales.services import reports
from sales.services.exceptions import TransactionNotFoundError


def _parse_date(date_str: str | None):
    """
    Accepts YYYY-MM-DD. Returns None for missing or malformed input.
    """
    if not date_str:
        return None
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        return None


def _day_start(d):
    return timezone.make_aware(datetime.combine(d, time.min), timezone.get_current_timezone())


class TransactionPagination(PageNumberPagination):
    page_size = 10
    page_size_query_param = "limit"
    max_page_size = 100


class TransactionListView(APIView):
    permission_classes = [IsAuthenticated, HasAnyCapability]
    required_any_capabilities = {CAP_POS_SELL, CAP_REPORTS_VIEW_POS}

    def get_queryset(self):
        params = self.request.query_params
        qs = (
            Transaction.objects.filter(owner=self.request.user.pharmacy_account)
            .prefetch_related("items")
            .order_by("-transaction_date")
        )

        qs = qs.filter(transaction_type=(params.get("transaction_type") or Transaction.TYPE_SALE).strip())

        branch = resolve_branch(self.request.user.pharmacy_account, (params.get("branch") or "").strip())
        if branch is not None:
            qs = qs.filter(branch=branch)

        q = (params.get("q") or params.get("search") or "").strip()
        if q:
            qs = qs.filter(
                Q(transaction_number__icontains=q)
                | Q(transaction_ref__icontains=q)
                | Q(description__icontains=q)
                | Q(customer_name__icontains=q)
                | Q(customer_phone__icontains=q)
                | Q(items__medicine_name__icontains=q)
            ).distinct()

        for param in ("status", "sale_type", "payment_method"):
            value = (params.get(param) or "").strip()
            if value:
                qs = qs.filter(**{param: value})

        d1 = _parse_date(params.get("date_from"))
        if d1:
            qs = qs.filter(transaction_date__gte=_day_start(d1))

        d2 = _parse_date(params.get("date_to"))
        if d2:
            qs = qs.filter(transaction_date__lt=_day_start(d2 + timedelta(days=1)))

        return qs

    @extend_schema(
        parameters=[
            OpenApiParameter("q", OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter("status", OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter("sale_type", OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter("payment_method", OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter("date_from", OpenApiTypes.DATE, OpenApiParameter.QUERY),
            OpenApiParameter("date_to", OpenApiTypes.DATE, OpenApiParameter.QUERY),
            OpenApiParameter("branch", OpenApiTypes.UUID, OpenApiParameter.QUERY),
            OpenApiParameter("page", OpenApiTypes.INT, OpenApiParameter.QUERY),
            OpenApiParameter("limit", OpenApiTypes.INT, OpenApiParameter.QUERY),
        ],
        responses={200: TransactionListSerializer(many=True)},
    )
    @handles_domain_errors
    def get(self, request):
        paginator = TransactionPagination()
        qs = self.get_queryset()
        page = paginator.paginate_queryset(qs, request, view=self)

        total = paginator.page.paginator.count
        return success_response(
            {
                "results": TransactionListSerializer(page, many=True).data,
                "pagination": {
                    "page": paginator.page.number,
                    "limit": paginator.get_page_size(request),
                    "total": total,
                    "pages": paginator.page.paginator.num_pages,
                },
            }
        )


class TransactionDetailView(APIView):
    permission_classes = [IsAuthenticated, HasAnyCapability]
    required_any_capabilities = {CAP_POS_SELL, CAP_REPORTS_VIEW_POS}

    @extend_schema(responses={200: TransactionSerializer})
    @handles_domain_errors
    def get(self, request, transaction_id):
        txn = (
            Transaction.objects.filter(owner=request.user.pharmacy_account, pk=transaction_id)
            .select_related("delivery_address")
            .prefetch_related("items", "refunds")
            .first()
        )
        if txn is None:
            raise TransactionNotFoundError(f"Transaction {transaction_id} not found")
        return success_response(TransactionSerializer(txn).data)


class SaleStatisticsView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_REPORTS_VIEW_POS

    @extend_schema(
        parameters=[
            OpenApiParameter("period", OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter("branch", OpenApiTypes.UUID, OpenApiParameter.QUERY),
        ],
    )
    @handles_domain_errors
    def get(self, request):
        owner = request.user.pharmacy_account
        period = (request.query_params.get("period") or "month").strip()
        branch = resolve_branch(owner, (request.query_params.get("branch") or "").strip())
        data = reports.sale_statistics(owner, period, branch=branch)
        return success_response(data)


class SalesDashboardView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_REPORTS_VIEW_POS

    @extend_schema(
        parameters=[
            OpenApiParameter("period", OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter("start_date", OpenApiTypes.DATE, OpenApiParameter.QUERY),
            OpenApiParameter("end_date", OpenApiTypes.DATE, OpenApiParameter.QUERY),
            OpenApiParameter("branch", OpenApiTypes.UUID, OpenApiParameter.QUERY),
        ],
    )
    @handles_domain_errors
    def get(self, request):
        params = request.query_params
        period = (params.get("period") or "today").strip()

        start = end = None
        if period == "custom":
            d1 = _parse_date(params.get("start_date"))
            d2 = _parse_date(params.get("end_date"))
            if d1 is None or d2 is None:
                return error_response(
                    code="VALIDATION_ERROR",
                    message="Invalid date format. Use YYYY-MM-DD.",
                    http_status=400,
                )
            start, end = _day_start(d1), _day_start(d2 + timedelta(days=1))

        owner = request.user.pharmacy_account
        branch = resolve_branch(owner, (params.get("branch") or "").strip())
        data = reports.sales_dashboard(owner, period, start=start, end=end, branch=branch)
        return success_response(data)

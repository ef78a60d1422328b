# sales/services/reports.py

"""
SALES REPORTING PROJECTIONS

Purpose:
- Read-only aggregations over persisted transactions for the sales dashboard,
  statistics and period reports.

Definitions:
- A sale counts toward revenue when transaction_type == "sale" and status is
  completed or partially_refunded. Fully refunded and cancelled sales are
  excluded.
- Periods are evaluated against transaction_date in the server timezone.
- Every projection can be narrowed to one branch.

Nothing here writes; totals on the transactions themselves stay authoritative.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Avg, Count, Sum
from django.db.models.functions import ExtractHour, TruncDate
from django.utils import timezone

from sales.models import Transaction, TransactionItem, TransactionRefund
from sales.services.exceptions import ValidationError

TWOPLACES = Decimal("0.01")

COUNTED_STATUSES = (Transaction.STATUS_COMPLETED, Transaction.STATUS_PARTIALLY_REFUNDED)

PERIODS = ("today", "week", "month", "year", "custom")


def _money(v) -> str:
    return str(Decimal(str(v or "0")).quantize(TWOPLACES, rounding=ROUND_HALF_UP))


def _day_start(d):
    return timezone.make_aware(datetime.combine(d, time.min), timezone.get_current_timezone())


def period_bounds(period: str = "today", *, start=None, end=None, now=None):
    """
    (start, end) datetimes for a named period. Unknown names fall back to the
    last 30 days.
    """
    now = now or timezone.now()
    today = timezone.localdate(now)

    if period == "today":
        return _day_start(today), now
    if period == "week":
        return now - timedelta(days=7), now
    if period == "month":
        return _day_start(today.replace(day=1)), now
    if period == "year":
        return _day_start(today.replace(month=1, day=1)), now
    if period == "custom":
        if not start or not end:
            raise ValidationError("custom period requires start and end")
        if start > end:
            raise ValidationError("start must not be after end")
        return start, end
    return now - timedelta(days=30), now


def _sales(owner, start=None, end=None, branch=None):
    qs = Transaction.objects.filter(
        owner=owner,
        transaction_type=Transaction.TYPE_SALE,
        status__in=COUNTED_STATUSES,
    )
    if branch is not None:
        qs = qs.filter(branch=branch)
    if start is not None:
        qs = qs.filter(transaction_date__gte=start)
    if end is not None:
        qs = qs.filter(transaction_date__lte=end)
    return qs


def sales_report(owner, start, end, *, branch=None) -> dict:
    qs = _sales(owner, start, end, branch)
    agg = qs.aggregate(
        total_sales=Sum("total_amount"),
        transaction_count=Count("id"),
        average_sale=Avg("total_amount"),
        total_tax=Sum("tax"),
        total_discount=Sum("discount"),
        total_profit=Sum("profit"),
    )
    refunded = TransactionRefund.objects.filter(transaction__in=qs).aggregate(
        total=Sum("amount")
    )["total"]

    return {
        "start": start.isoformat() if start else None,
        "end": end.isoformat() if end else None,
        "total_sales": _money(agg["total_sales"]),
        "transaction_count": agg["transaction_count"] or 0,
        "average_sale": _money(agg["average_sale"]),
        "total_tax": _money(agg["total_tax"]),
        "total_discount": _money(agg["total_discount"]),
        "total_profit": _money(agg["total_profit"]),
        "total_refunded": _money(refunded),
    }


def sales_dashboard(
    owner, period: str = "today", *, start=None, end=None, now=None, branch=None
) -> dict:
    now = now or timezone.now()
    start, end = period_bounds(period, start=start, end=end, now=now)
    qs = _sales(owner, start, end, branch)

    agg = qs.aggregate(
        total_sales=Sum("total_amount"),
        total_transactions=Count("id"),
        average_sale=Avg("total_amount"),
    )
    items_sold = TransactionItem.objects.filter(transaction__in=qs).aggregate(
        total=Sum("quantity")
    )["total"]

    recent = [
        {
            "id": str(t.pk),
            "transaction_number": t.transaction_number,
            "total_amount": _money(t.total_amount),
            "customer_name": t.customer_name,
            "transaction_date": t.transaction_date.isoformat(),
        }
        for t in _sales(owner, branch=branch).order_by("-transaction_date")[:10]
    ]

    top_medicines = [
        {
            "medicine_id": str(row["medicine"]) if row["medicine"] else None,
            "medicine_name": row["medicine_name"],
            "total_sold": row["total_sold"],
            "total_revenue": _money(row["total_revenue"]),
        }
        for row in (
            TransactionItem.objects.filter(transaction__in=qs)
            .values("medicine", "medicine_name")
            .annotate(total_sold=Sum("quantity"), total_revenue=Sum("total_price"))
            .order_by("-total_sold", "medicine_name")[:5]
        )
    ]

    today_start, _ = period_bounds("today", now=now)
    by_hour = [
        {
            "hour": row["hour"],
            "total_sales": _money(row["total_sales"]),
            "count": row["count"],
        }
        for row in (
            _sales(owner, today_start, now, branch)
            .annotate(hour=ExtractHour("transaction_date"))
            .values("hour")
            .annotate(total_sales=Sum("total_amount"), count=Count("id"))
            .order_by("hour")
        )
    ]

    return {
        "period": period,
        "overview": {
            "total_sales": _money(agg["total_sales"]),
            "total_transactions": agg["total_transactions"] or 0,
            "average_sale": _money(agg["average_sale"]),
            "total_items_sold": items_sold or 0,
        },
        "recent_transactions": recent,
        "top_medicines": top_medicines,
        "sales_by_hour": by_hour,
    }


def _distribution(qs, field: str) -> list[dict]:
    return [
        {
            field: row[field] or "",
            "total_amount": _money(row["total_amount"]),
            "count": row["count"],
        }
        for row in qs.values(field)
        .annotate(total_amount=Sum("total_amount"), count=Count("id"))
        .order_by(field)
    ]


def sale_statistics(owner, period: str = "month", *, now=None, branch=None) -> dict:
    start, end = period_bounds(period, now=now)
    qs = _sales(owner, start, end, branch)

    trend = [
        {
            "date": row["day"].isoformat(),
            "total_sales": _money(row["total_sales"]),
            "transaction_count": row["transaction_count"],
        }
        for row in qs.annotate(day=TruncDate("transaction_date"))
        .values("day")
        .annotate(total_sales=Sum("total_amount"), transaction_count=Count("id"))
        .order_by("day")
    ]

    return {
        "period": period,
        "sales_trend": trend,
        "payment_distribution": _distribution(qs, "payment_method"),
        "sale_type_distribution": _distribution(qs, "sale_type"),
    }


def find_by_status(owner, status: str):
    if status not in dict(Transaction.STATUS_CHOICES):
        raise ValidationError(f"Invalid status: {status}")
    return Transaction.objects.filter(owner=owner, status=status).order_by("-transaction_date")

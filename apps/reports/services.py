import calendar
from datetime import date
from decimal import Decimal

from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum, Value
from django.db.models.functions import Coalesce, TruncMonth

from apps.deliveries.models import Delivery, DeliveryStatus

MONEY_FIELD = DecimalField(max_digits=16, decimal_places=2)
ZERO = Value(Decimal("0.00"), output_field=MONEY_FIELD)
DASHBOARD_MONTHS = 6
RECENT_LIMIT = 5


class ReportPeriod:
    DAILY = "daily"
    MONTHLY = "monthly"
    CHOICES = (DAILY, MONTHLY)


def month_bounds(day):
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)


def period_range(period, as_of):
    if period == ReportPeriod.DAILY:
        return as_of, as_of
    if period == ReportPeriod.MONTHLY:
        return month_bounds(as_of)
    raise ValueError(f"unknown report period: {period}")


def shift_month(day, months):
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def trailing_months(as_of, count=DASHBOARD_MONTHS):
    """First day of each of the `count` months ending at as_of's month, oldest first."""
    current = as_of.replace(day=1)
    return [shift_month(current, offset) for offset in range(-(count - 1), 1)]


def delivery_rows(date_from, date_to):
    return (
        Delivery.objects.select_related("truck")
        .filter(delivery_date__gte=date_from, delivery_date__lte=date_to)
        .order_by("-delivery_date", "-created_at")
    )


def report_totals(deliveries):
    # aggregate aliases must not shadow the columns they sum
    amount_due = ExpressionWrapper(F("total_amount") - F("amount_paid"), output_field=MONEY_FIELD)
    totals = deliveries.aggregate(
        deliveries_count=Count("id"),
        total_amount_sum=Coalesce(Sum("total_amount"), ZERO, output_field=MONEY_FIELD),
        amount_paid_sum=Coalesce(Sum("amount_paid"), ZERO, output_field=MONEY_FIELD),
        amount_due_sum=Coalesce(Sum(amount_due), ZERO, output_field=MONEY_FIELD),
    )
    return {
        "deliveries_count": totals["deliveries_count"],
        "total_amount": totals["total_amount_sum"],
        "amount_paid": totals["amount_paid_sum"],
        "amount_due": totals["amount_due_sum"],
    }


def total_due(deliveries):
    """Outstanding balance over deliveries that are due or partially paid."""
    outstanding = ExpressionWrapper(F("total_amount") - F("amount_paid"), output_field=MONEY_FIELD)
    return deliveries.filter(status__in=[DeliveryStatus.DUE, DeliveryStatus.PARTIAL]).aggregate(
        total=Coalesce(Sum(outstanding), ZERO, output_field=MONEY_FIELD)
    )["total"]


def monthly_totals(deliveries, as_of, count=DASHBOARD_MONTHS):
    months = trailing_months(as_of, count)
    window_end = month_bounds(as_of)[1]
    rows = (
        deliveries.filter(delivery_date__gte=months[0], delivery_date__lte=window_end)
        .annotate(month=TruncMonth("delivery_date"))
        .values("month")
        .annotate(total=Coalesce(Sum("total_amount"), ZERO, output_field=MONEY_FIELD))
        .order_by("month")
    )
    totals = {}
    for row in rows:
        month = row["month"]
        # TruncMonth yields a datetime on some backends
        if hasattr(month, "date"):
            month = month.date()
        totals[month] = totals.get(month, Decimal("0.00")) + row["total"]
    return [
        {
            "month": f"{month:%Y-%m}",
            "label": month.strftime("%b"),
            "total_amount": totals.get(month, Decimal("0.00")),
        }
        for month in months
    ]


def status_breakdown(deliveries):
    counts = {status.value: 0 for status in (DeliveryStatus.PAID, DeliveryStatus.DUE, DeliveryStatus.PARTIAL)}
    for row in deliveries.values("status").annotate(count=Count("id")).order_by():
        counts[row["status"]] = row["count"]
    return counts


def dashboard_summary(as_of):
    deliveries = Delivery.objects.all()
    month_start, month_end = month_bounds(as_of)
    return {
        "as_of": as_of,
        "today_deliveries": deliveries.filter(delivery_date=as_of).count(),
        "month_deliveries": deliveries.filter(delivery_date__gte=month_start, delivery_date__lte=month_end).count(),
        "total_due": total_due(deliveries),
        "monthly_totals": monthly_totals(deliveries, as_of),
        "status_breakdown": status_breakdown(deliveries),
        "recent_deliveries": list(
            deliveries.select_related("truck").order_by("-created_at")[:RECENT_LIMIT]
        ),
    }

from django.db.models import Count, DecimalField, Sum, Value
from django.db.models.functions import Coalesce

from core.services.money import ZERO
from documents.models import Expense

UNCATEGORIZED = "Uncategorized"


def _money_sum(field):
    return Coalesce(Sum(field), Value(ZERO), output_field=DecimalField(max_digits=14, decimal_places=2))


def expense_summary(start, end) -> dict:
    """Expense count and total per status for issue dates in [start, end].

    {"pending": {"count": 2, "total": Decimal(...)}, ..., "all": {...}}
    Every status is present, with zeros when there are no expenses.
    """
    summary = {status: {"count": 0, "total": ZERO} for status in Expense.Status.values}

    rows = (
        Expense.objects
        .filter(issue_date__range=(start, end))
        .values("status")
        .annotate(count=Count("id"), total=_money_sum("total_amount"))
        .order_by("status")
    )
    for row in rows:
        summary[row["status"]] = {"count": row["count"], "total": row["total"]}

    summary["all"] = {
        "count": sum(v["count"] for v in summary.values()),
        "total": sum((v["total"] for v in summary.values()), ZERO),
    }
    return summary


def monthly_expenses_by_category(year, month) -> list:
    """Approved expenses of one month grouped by category, largest first."""
    rows = (
        Expense.objects
        .filter(status=Expense.Status.APPROVED, issue_date__year=year, issue_date__month=month)
        .values("category__name")
        .annotate(count=Count("id"), total=_money_sum("total_amount"))
        .order_by("-total", "category__name")
    )
    return [
        {"category": row["category__name"] or UNCATEGORIZED, "count": row["count"], "total": row["total"]}
        for row in rows
    ]

"""Pending payables / receivables report.

Read-only. Every row is derived from the current documents and their
payments; nothing here is stored.

Payables: confirmed or received purchase orders, approved supplier invoices
and expenses, not fully paid.
Receivables: issued or partially paid sales invoices.

A purchase order drops out once its supplier invoice is recorded; its
advances move to that invoice (documents.services.conversion), so the
liability is listed once.
"""

import datetime
import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db.models import DecimalField, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from core.services.money import ZERO
from documents.models import Expense, PaymentStatus, PurchaseOrder, SalesInvoice, SupplierInvoice

logger = logging.getLogger(__name__)

PAYABLE_MODELS = (PurchaseOrder, SupplierInvoice, Expense)
RECEIVABLE_MODELS = (SalesInvoice,)


@dataclass(frozen=True)
class PendingPayableRow:
    document: object
    family: str
    number: str
    party_name: str
    issue_date: datetime.date
    due_date: datetime.date
    total_amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal
    days_overdue: int
    integrity_warning: bool = False

    @property
    def document_ref(self) -> str:
        return f"{self.family}:{self.document.pk}"

    @property
    def is_overdue(self) -> bool:
        return self.days_overdue > 0

    @property
    def status_label(self) -> str:
        if not self.is_overdue:
            return "current"
        return f"{self.days_overdue} days overdue"


def days_overdue(due_date, as_of) -> int:
    """Whole days past due_date; 0 when not yet due or no due date."""
    if due_date is None:
        return 0
    return max(0, (as_of - due_date).days)


def _open_documents(model):
    queryset = model.objects.filter(status__in=model.PAYABLE_STATES).exclude(payment_status=PaymentStatus.PAID)
    if model is PurchaseOrder:
        queryset = queryset.exclude(supplier_invoices__status__in=SupplierInvoice.OPEN_STATES)
    return (
        queryset
        .select_related(model.party_field)
        .annotate(
            paid=Coalesce(
                Sum("payments__amount"),
                Value(ZERO),
                output_field=DecimalField(max_digits=14, decimal_places=2),
            )
        )
    )


def _row(doc, as_of) -> PendingPayableRow:
    family = type(doc).__name__
    pending = doc.total_amount - doc.paid
    warning = False

    if pending < ZERO:
        logger.warning(
            "%s %s: payments %s exceed total %s; pending clamped to 0",
            family, doc.display_no, doc.paid, doc.total_amount,
        )
        pending = ZERO
        warning = True

    return PendingPayableRow(
        document=doc,
        family=family,
        number=doc.number or "",
        party_name=doc.party_name,
        issue_date=doc.issue_date,
        due_date=doc.due_date,
        total_amount=doc.total_amount,
        paid_amount=doc.paid,
        pending_amount=pending,
        days_overdue=days_overdue(doc.due_date, as_of),
        integrity_warning=warning,
    )


def _sort_key(row):
    # due date ascending, undated last; the rest only makes the order stable
    return (
        row.due_date is None,
        row.due_date or datetime.date.max,
        row.issue_date,
        row.family,
        row.number,
        row.document.pk,
    )


def _collect(models, as_of):
    as_of = as_of or timezone.localdate()
    rows = [_row(doc, as_of) for model in models for doc in _open_documents(model)]
    rows.sort(key=_sort_key)
    return rows


def list_pending_payables(as_of=None) -> list:
    """Open purchase orders, supplier invoices and expenses as PendingPayableRow, oldest due first."""
    return _collect(PAYABLE_MODELS, as_of)


def list_pending_receivables(as_of=None) -> list:
    """Open sales invoices, same row shape as list_pending_payables()."""
    return _collect(RECEIVABLE_MODELS, as_of)


def totals(rows) -> dict:
    """Summary used by the report command."""
    return {
        "count": len(rows),
        "pending": sum((r.pending_amount for r in rows), ZERO),
        "overdue": sum((r.pending_amount for r in rows if r.is_overdue), ZERO),
    }

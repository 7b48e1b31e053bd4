from django.db import models
from django_fsm import FSMField, transition
from django_fsm_log.decorators import fsm_log_by
from simple_history.models import HistoricalRecords

from documents.models.base import LedgerDocument, LedgerLine
from masterdata.services.catalog import PURCHASE


class Expense(LedgerDocument):
    """Operating expense: pending -> approved | rejected.

    Both outcomes are terminal for the lifecycle; an approved expense stays
    open for payment until payment_status reaches paid.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending approval"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"

    party_field = "supplier"
    series_setting = "EXPENSE_SERIES"
    price_purpose = PURCHASE

    EDITABLE_STATES = (Status.PENDING,)
    PAYABLE_STATES = (Status.APPROVED,)
    CLOSING_STATES = (Status.REJECTED,)

    status = FSMField(default=Status.PENDING, choices=Status.choices, protected=True)

    supplier = models.ForeignKey("masterdata.Supplier", on_delete=models.PROTECT, related_name="expenses")
    category = models.ForeignKey(
        "masterdata.ExpenseCategory", null=True, blank=True, on_delete=models.PROTECT, related_name="expenses"
    )

    history = HistoricalRecords()

    class Meta(LedgerDocument.Meta):
        indexes = [
            models.Index(fields=["status", "issue_date"]),
        ]

    @fsm_log_by
    @transition(field=status, source=Status.PENDING, target=Status.APPROVED)
    def approve(self, by=None):
        self._issue(by)

    @fsm_log_by
    @transition(field=status, source=Status.PENDING, target=Status.REJECTED)
    def reject(self, by=None, reason=""):
        self._close(self.Status.REJECTED, by, reason)


class ExpenseLine(LedgerLine):
    document = models.ForeignKey(Expense, on_delete=models.CASCADE, related_name="lines")

    class Meta(LedgerLine.Meta):
        unique_together = ("document", "line_no")

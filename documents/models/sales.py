from django.db import models
from django_fsm import FSMField, transition
from django_fsm_log.decorators import fsm_log_by
from simple_history.models import HistoricalRecords

from documents.models.base import LedgerDocument, LedgerLine, PaymentStatus
from masterdata.models import NcfType
from masterdata.services.catalog import SALE


class SalesInvoice(LedgerDocument):
    """Sales invoice with state machine.

    draft -> issued -> partial -> paid
    draft|issued -> voided

    partial/paid (and partial -> issued when a payment is reversed) are
    driven by ledger.services.settlement, never requested directly.
    The fiscal number (NCF) is allocated from the series named by ncf_type
    when the invoice is issued.
    """

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        ISSUED = "issued", "Issued"
        PARTIAL = "partial", "Partially paid"
        PAID = "paid", "Paid"
        VOIDED = "voided", "Voided"

    party_field = "customer"
    price_purpose = SALE

    EDITABLE_STATES = (Status.DRAFT,)
    PAYABLE_STATES = (Status.ISSUED, Status.PARTIAL)
    CLOSING_STATES = (Status.VOIDED,)

    status = FSMField(default=Status.DRAFT, choices=Status.choices, protected=True)

    customer = models.ForeignKey("masterdata.Customer", on_delete=models.PROTECT, related_name="sales_invoices")
    # blank = take the customer's invoice_type on save
    ncf_type = models.CharField(max_length=3, choices=NcfType.choices, blank=True, default="")
    quote = models.OneToOneField(
        "documents.Quote", null=True, blank=True, on_delete=models.PROTECT, related_name="invoice"
    )

    history = HistoricalRecords()

    class Meta(LedgerDocument.Meta):
        indexes = [
            models.Index(fields=["status", "due_date"]),
        ]

    def save(self, *args, **kwargs):
        if not self.ncf_type and self.customer_id:
            self.ncf_type = self.customer.invoice_type
        super().save(*args, **kwargs)

    def series_code(self) -> str:
        return self.ncf_type

    @fsm_log_by
    @transition(field=status, source=Status.DRAFT, target=Status.ISSUED)
    def issue(self, by=None):
        """Issue the invoice: totals, NCF and due date are stamped here."""
        self._issue(by)

    @fsm_log_by
    @transition(field=status, source=Status.ISSUED, target=Status.PARTIAL, custom={"driven_by": "payment"})
    def mark_partly_paid(self, by=None):
        self._stamp(by)

    @fsm_log_by
    @transition(
        field=status, source=[Status.ISSUED, Status.PARTIAL], target=Status.PAID, custom={"driven_by": "payment"}
    )
    def mark_paid(self, by=None):
        self._stamp(by)

    @fsm_log_by
    @transition(field=status, source=Status.PARTIAL, target=Status.ISSUED, custom={"driven_by": "payment"})
    def mark_unpaid(self, by=None):
        self._stamp(by)

    @fsm_log_by
    @transition(field=status, source=[Status.DRAFT, Status.ISSUED], target=Status.VOIDED)
    def void(self, by=None, reason=""):
        self._close(self.Status.VOIDED, by, reason)

    def on_payment_status_changed(self, by=None):
        """Keep status in step with payment_status."""
        if self.payment_status == PaymentStatus.PAID:
            self.mark_paid(by=by)
        elif self.payment_status == PaymentStatus.PARTIAL and self.status == self.Status.ISSUED:
            self.mark_partly_paid(by=by)
        elif self.payment_status == PaymentStatus.PENDING and self.status == self.Status.PARTIAL:
            self.mark_unpaid(by=by)


class SalesInvoiceLine(LedgerLine):
    document = models.ForeignKey(SalesInvoice, on_delete=models.CASCADE, related_name="lines")

    class Meta(LedgerLine.Meta):
        unique_together = ("document", "line_no")


class Quote(LedgerDocument):
    """Quote (cotización).

    draft -> sent -> approved -> converted
                  -> rejected

    Numbered from the quote series when sent. Quotes take no payments; an
    approved quote becomes a draft SalesInvoice via
    documents.services.conversion.convert_quote_to_invoice().
    """

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"
        CONVERTED = "converted", "Converted"

    party_field = "customer"
    series_setting = "QUOTE_SERIES"
    price_purpose = SALE
    has_due_date = False

    EDITABLE_STATES = (Status.DRAFT,)
    CLOSING_STATES = (Status.REJECTED,)

    status = FSMField(default=Status.DRAFT, choices=Status.choices, protected=True)

    customer = models.ForeignKey("masterdata.Customer", on_delete=models.PROTECT, related_name="quotes")
    valid_until = models.DateField(null=True, blank=True)

    history = HistoricalRecords()

    @fsm_log_by
    @transition(field=status, source=Status.DRAFT, target=Status.SENT)
    def send(self, by=None):
        self._issue(by)

    @fsm_log_by
    @transition(field=status, source=Status.SENT, target=Status.APPROVED)
    def approve(self, by=None):
        self._stamp(by)

    @fsm_log_by
    @transition(field=status, source=Status.SENT, target=Status.REJECTED)
    def reject(self, by=None, reason=""):
        self._close(self.Status.REJECTED, by, reason)

    @fsm_log_by
    @transition(field=status, source=Status.APPROVED, target=Status.CONVERTED, custom={"driven_by": "conversion"})
    def mark_converted(self, by=None):
        self._stamp(by)


class QuoteLine(LedgerLine):
    document = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name="lines")

    class Meta(LedgerLine.Meta):
        unique_together = ("document", "line_no")

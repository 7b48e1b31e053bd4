from django.db import models
from django_fsm import FSMField, transition
from django_fsm_log.decorators import fsm_log_by
from simple_history.models import HistoricalRecords

from documents.models.base import LedgerDocument, LedgerLine
from masterdata.services.catalog import PURCHASE


class PurchaseOrder(LedgerDocument):
    """Purchase order: draft -> sent -> confirmed -> received.

    draft|sent -> cancelled. The PO number is allocated when the order is
    sent. Advance payments are accepted once the supplier has confirmed.
    When the supplier's invoice is recorded the advances move to it and the
    order stops taking payments; the invoice carries the liability.
    """

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        CONFIRMED = "confirmed", "Confirmed"
        RECEIVED = "received", "Received"
        CANCELLED = "cancelled", "Cancelled"

    party_field = "supplier"
    series_setting = "PURCHASE_ORDER_SERIES"
    price_purpose = PURCHASE
    has_due_date = False

    EDITABLE_STATES = (Status.DRAFT,)
    PAYABLE_STATES = (Status.CONFIRMED, Status.RECEIVED)
    CLOSING_STATES = (Status.CANCELLED,)

    status = FSMField(default=Status.DRAFT, choices=Status.choices, protected=True)

    supplier = models.ForeignKey("masterdata.Supplier", on_delete=models.PROTECT, related_name="purchase_orders")
    expected_date = models.DateField(null=True, blank=True)

    history = HistoricalRecords()

    def billed_invoices(self):
        """Supplier invoices recorded against this order that still stand."""
        return self.supplier_invoices.filter(status__in=SupplierInvoice.OPEN_STATES)

    @property
    def accepts_payments(self) -> bool:
        return super().accepts_payments and not self.billed_invoices().exists()

    @fsm_log_by
    @transition(field=status, source=Status.DRAFT, target=Status.SENT)
    def send(self, by=None):
        self._issue(by)

    @fsm_log_by
    @transition(field=status, source=Status.SENT, target=Status.CONFIRMED)
    def confirm(self, by=None):
        self._stamp(by)

    @fsm_log_by
    @transition(field=status, source=Status.CONFIRMED, target=Status.RECEIVED)
    def receive(self, by=None):
        self._stamp(by)

    @fsm_log_by
    @transition(field=status, source=[Status.DRAFT, Status.SENT], target=Status.CANCELLED)
    def cancel(self, by=None, reason=""):
        self._close(self.Status.CANCELLED, by, reason)


class PurchaseOrderLine(LedgerLine):
    document = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name="lines")

    class Meta(LedgerLine.Meta):
        unique_together = ("document", "line_no")


class SupplierInvoice(LedgerDocument):
    """Invoice received from a supplier.

    pending -> approved -> voided
    pending -> rejected

    supplier_number is the supplier's own NCF; `number` is our internal
    reference, allocated on approval. Payable while approved.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending approval"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"
        VOIDED = "voided", "Voided"

    party_field = "supplier"
    series_setting = "SUPPLIER_INVOICE_SERIES"
    price_purpose = PURCHASE

    EDITABLE_STATES = (Status.PENDING,)
    PAYABLE_STATES = (Status.APPROVED,)
    CLOSING_STATES = (Status.REJECTED, Status.VOIDED)
    # recorded and neither rejected nor voided
    OPEN_STATES = (Status.PENDING, Status.APPROVED)

    status = FSMField(default=Status.PENDING, choices=Status.choices, protected=True)

    supplier = models.ForeignKey("masterdata.Supplier", on_delete=models.PROTECT, related_name="supplier_invoices")
    supplier_number = models.CharField(max_length=40, blank=True, default="")
    purchase_order = models.ForeignKey(
        PurchaseOrder, null=True, blank=True, on_delete=models.PROTECT, related_name="supplier_invoices"
    )

    history = HistoricalRecords()

    class Meta(LedgerDocument.Meta):
        indexes = [
            models.Index(fields=["status", "due_date"]),
            models.Index(fields=["supplier", "supplier_number"]),
        ]

    @fsm_log_by
    @transition(field=status, source=Status.PENDING, target=Status.APPROVED)
    def approve(self, by=None):
        self._issue(by)

    @fsm_log_by
    @transition(field=status, source=Status.PENDING, target=Status.REJECTED)
    def reject(self, by=None, reason=""):
        self._close(self.Status.REJECTED, by, reason)

    @fsm_log_by
    @transition(field=status, source=Status.APPROVED, target=Status.VOIDED)
    def void(self, by=None, reason=""):
        self._close(self.Status.VOIDED, by, reason)


class SupplierInvoiceLine(LedgerLine):
    document = models.ForeignKey(SupplierInvoice, on_delete=models.CASCADE, related_name="lines")

    class Meta(LedgerLine.Meta):
        unique_together = ("document", "line_no")

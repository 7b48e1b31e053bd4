from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone
from simple_history.models import HistoricalRecords


class Payment(models.Model):
    """A payment received (sales) or made (purchases/expenses).

    Exactly one of the document FKs is set. Every document family that
    accepts payments reaches its rows as `document.payments`.
    Rows are written and deleted only by ledger.services.settlement.
    """

    DOCUMENT_FIELDS = ("sales_invoice", "purchase_order", "supplier_invoice", "expense")

    sales_invoice = models.ForeignKey(
        "documents.SalesInvoice", null=True, blank=True, on_delete=models.PROTECT, related_name="payments"
    )
    purchase_order = models.ForeignKey(
        "documents.PurchaseOrder", null=True, blank=True, on_delete=models.PROTECT, related_name="payments"
    )
    supplier_invoice = models.ForeignKey(
        "documents.SupplierInvoice", null=True, blank=True, on_delete=models.PROTECT, related_name="payments"
    )
    expense = models.ForeignKey(
        "documents.Expense", null=True, blank=True, on_delete=models.PROTECT, related_name="payments"
    )

    method = models.ForeignKey("masterdata.PaymentMethod", on_delete=models.PROTECT, related_name="payments")
    amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    reference_number = models.CharField(max_length=100, blank=True, default="")
    payment_date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )

    history = HistoricalRecords()

    class Meta:
        ordering = ("payment_date", "id")

    def __str__(self):
        return f"{self.amount} on {self.payment_date} ({self.method})"

    @classmethod
    def field_for(cls, document) -> str:
        """Name of the FK that points at `document`'s family."""
        for name in cls.DOCUMENT_FIELDS:
            if cls._meta.get_field(name).related_model is type(document):
                return name
        raise ValueError(f"{type(document).__name__} does not take payments")

    @property
    def document(self):
        for name in self.DOCUMENT_FIELDS:
            if getattr(self, f"{name}_id"):
                return getattr(self, name)
        return None

from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Sum
from django.utils import timezone

from core.conf import ledger_setting
from core.exceptions import DocumentLocked, InvalidTransition, ValidationError
from core.services.money import ZERO, compute_document_totals, compute_line
from masterdata.services.catalog import SALE


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PARTIAL = "partial", "Partially paid"
    PAID = "paid", "Paid"


class LedgerDocument(models.Model):
    """Fields and helpers shared by every document family.

    Each concrete family declares its own `status` FSMField and the
    @transition methods; the class attributes below tell the services
    how to treat it:

    - party_field: FK to the customer/supplier that owns the document
    - series_setting: LEDGER setting holding the number series code
    - price_purpose: which catalog price new lines default to
    - EDITABLE_STATES: lines may only change here
    - PAYABLE_STATES: payments may only be applied/reversed here
    - CLOSING_STATES: targets that need a reason (void/cancel/reject)
    """

    party_field = "customer"
    series_setting = None
    price_purpose = SALE
    has_due_date = True

    EDITABLE_STATES = ()
    PAYABLE_STATES = ()
    CLOSING_STATES = ()

    # stamped exactly once, on the issue-like transition
    number = models.CharField(max_length=40, null=True, blank=True, unique=True, editable=False)

    issue_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)

    payment_status = models.CharField(
        max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.PENDING, editable=False
    )

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), editable=False)
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), editable=False)
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), editable=False)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), editable=False)

    notes = models.TextField(blank=True, default="")

    status_reason = models.CharField(max_length=255, blank=True, default="", editable=False)
    status_changed_at = models.DateTimeField(null=True, blank=True, editable=False)
    status_changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.PROTECT, related_name="+", editable=False
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True
        ordering = ("-issue_date", "-id")

    def __str__(self):
        return f"{self._meta.verbose_name.capitalize()} {self.display_no} ({self.status})"

    @property
    def display_no(self) -> str:
        return self.number or f"#{self.pk}"

    @property
    def party(self):
        return getattr(self, self.party_field)

    @property
    def party_name(self) -> str:
        party = self.party
        return party.name if party is not None else ""

    @property
    def is_editable(self) -> bool:
        return self.status in self.EDITABLE_STATES

    @property
    def accepts_payments(self) -> bool:
        return self.status in self.PAYABLE_STATES

    def series_code(self) -> str:
        return ledger_setting(self.series_setting)

    def paid_amount(self) -> Decimal:
        """Sum of persisted payments. Families without payments return 0."""
        payments = getattr(self, "payments", None)
        if payments is None:
            return ZERO
        return payments.aggregate(total=Sum("amount"))["total"] or ZERO

    def outstanding_amount(self) -> Decimal:
        return self.total_amount - self.paid_amount()

    def recalculate_totals(self, save=True):
        """Recompute header totals from the persisted lines."""
        totals = compute_document_totals(self.lines.all())
        self.subtotal = totals.subtotal
        self.discount_amount = totals.discount_amount
        self.tax_amount = totals.tax_amount
        self.total_amount = totals.total_amount
        if save:
            self.save(update_fields=["subtotal", "discount_amount", "tax_amount", "total_amount"])
        return totals

    def on_payment_status_changed(self, by=None):
        """Hook for families whose status follows the payment status."""

    # ---- transition helpers (called from @transition methods) ----

    def _stamp(self, by=None, reason=""):
        self.status_changed_at = timezone.now()
        self.status_changed_by = by
        if reason:
            self.status_reason = reason

    def _ensure_issuable(self):
        """Issue precondition: at least one line and a live party."""
        if not self.lines.exists():
            raise ValidationError("Document has no lines.")
        party = self.party
        if party is None:
            raise ValidationError(f"Document has no {self.party_field}.")
        if getattr(party, "is_deleted", False):
            raise ValidationError(f"{self.party_field.capitalize()} {party} has been deleted.")

    def _allocate_number_if_missing(self):
        if self.number:
            return
        from core.services.numbering import allocate
        self.number = allocate(self.series_code())

    def _default_due_date(self):
        if not self.has_due_date or self.due_date:
            return
        days = getattr(self.party, "payment_terms_days", None)
        if days is None:
            days = ledger_setting("DEFAULT_PAYMENT_TERMS_DAYS")
        self.due_date = self.issue_date + timedelta(days=days)

    def _issue(self, by=None):
        """draft -> issued/sent/approved.

        - Ensures lines and party exist
        - Recomputes totals from the lines
        - Allocates the number (only if not allocated before)
        - Defaults the due date from the party's payment terms
        The caller saves; the allocation joins the caller's transaction.
        """
        self._ensure_issuable()
        self.recalculate_totals(save=False)
        self._allocate_number_if_missing()
        self._default_due_date()
        self._stamp(by)

    def _close(self, target, by=None, reason=""):
        """void / cancel / reject: needs a reason and no payments."""
        if not (reason or "").strip():
            raise ValidationError("A reason is required to close a document.")
        if self.paid_amount() > 0:
            raise InvalidTransition(self, target, f"{type(self).__name__} {self.pk} has payments; reverse them first.")
        self._stamp(by, reason.strip())


class LedgerLine(models.Model):
    """One line item. Amounts are derived from quantity, price and rates
    every time the line is saved; the document must still be editable."""

    line_no = models.IntegerField(default=0)

    product = models.ForeignKey("masterdata.Product", on_delete=models.PROTECT, related_name="+")
    description = models.CharField(max_length=255, blank=True, default="")

    quantity = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("1.000"))
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    discount_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), editable=False)
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), editable=False)
    taxable_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), editable=False)
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), editable=False)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), editable=False)

    class Meta:
        abstract = True
        ordering = ["line_no"]

    def __str__(self):
        return f"{self.line_no} {self.description} x {self.quantity}"

    def apply_amounts(self):
        amounts = compute_line(
            self.quantity,
            self.unit_price,
            self.tax_rate,
            self.discount_rate,
            whole_units=not self.product.allows_fractional_quantity,
        )
        self.quantity = amounts.quantity
        self.unit_price = amounts.unit_price
        self.subtotal = amounts.subtotal
        self.discount_amount = amounts.discount_amount
        self.taxable_amount = amounts.taxable_amount
        self.tax_amount = amounts.tax_amount
        self.total_amount = amounts.total_amount
        return amounts

    def _ensure_document_editable(self):
        """Check the stored document, not the instance cached on the line."""
        model = self._meta.get_field("document").related_model
        document = model.objects.get(pk=self.document_id)
        if not document.is_editable:
            raise DocumentLocked(document)

    def save(self, *args, **kwargs):
        self._ensure_document_editable()

        if not self.line_no:
            last = (
                type(self).objects
                .filter(document_id=self.document_id)
                .order_by("-line_no")
                .values_list("line_no", flat=True)
                .first()
            )
            self.line_no = (last or 0) + 10  # ERP-style spacing

        if not self.description:
            self.description = self.product.name

        self.apply_amounts()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        self._ensure_document_editable()
        return super().delete(*args, **kwargs)

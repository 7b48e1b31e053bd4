from django.contrib import admin, messages
from django.shortcuts import redirect
from django.urls import reverse
from django_object_actions import DjangoObjectActions, action
from simple_history.admin import SimpleHistoryAdmin

from core.exceptions import LedgerError
from documents.models import (
    Expense,
    ExpenseLine,
    PurchaseOrder,
    PurchaseOrderLine,
    Quote,
    QuoteLine,
    SalesInvoice,
    SalesInvoiceLine,
    SupplierInvoice,
    SupplierInvoiceLine,
)
from documents.services.conversion import convert_quote_to_invoice
from documents.services.lifecycle import allowed_transitions, transition


class LedgerLineInline(admin.TabularInline):
    """Lines are only editable while the parent document is."""

    extra = 0
    fk_name = "document"
    fields = ("line_no", "product", "description", "quantity", "unit_price", "tax_rate", "discount_rate", "total_amount")
    readonly_fields = ("total_amount",)

    def _editable(self, obj):
        return obj is None or obj.is_editable

    def has_add_permission(self, request, obj=None):
        return self._editable(obj) and super().has_add_permission(request, obj)

    def has_change_permission(self, request, obj=None):
        return self._editable(obj) and super().has_change_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        return self._editable(obj) and super().has_delete_permission(request, obj)


class LedgerDocumentAdmin(DjangoObjectActions, SimpleHistoryAdmin):
    """Shared admin for all document families.

    `transition_actions` maps a change-action name to its target status;
    the button is only shown when that transition is allowed from the
    current status. Closing transitions need a reason and are not offered
    as buttons.
    """

    transition_actions = {}
    # party and numbering inputs frozen once the document leaves its editable status
    locked_fields = ()

    list_filter = ("status", "payment_status")
    search_fields = ("number", "notes")
    date_hierarchy = "issue_date"
    readonly_fields = (
        "number", "status", "payment_status",
        "subtotal", "discount_amount", "tax_amount", "total_amount",
        "status_reason", "status_changed_at", "status_changed_by",
    )

    def get_readonly_fields(self, request, obj=None):
        fields = tuple(super().get_readonly_fields(request, obj))
        if obj is not None and not obj.is_editable:
            fields += (obj.party_field,) + self.locked_fields
        return fields

    def get_change_actions(self, request, object_id, form_url):
        obj = self.get_object(request, object_id)
        if not obj:
            return ()
        table = allowed_transitions(self.model)
        return tuple(
            name for name, target in self.transition_actions.items()
            if (obj.status, str(target)) in table
        )

    def _run_transition(self, request, obj, target):
        try:
            doc = transition(obj, target, by=request.user)
        except LedgerError as exc:
            self.message_user(request, f"Could not change status: {exc}", level=messages.ERROR)
            return
        self.message_user(request, f"{doc} is now {doc.get_status_display().lower()}.", level=messages.SUCCESS)

    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        doc = form.instance
        if doc.is_editable:
            doc.recalculate_totals()


class SalesInvoiceLineInline(LedgerLineInline):
    model = SalesInvoiceLine


@admin.register(SalesInvoice)
class SalesInvoiceAdmin(LedgerDocumentAdmin):
    inlines = [SalesInvoiceLineInline]
    list_display = ("issue_date", "number", "customer", "ncf_type", "total_amount", "status", "payment_status", "due_date")
    list_select_related = ("customer",)
    search_fields = ("number", "customer__name", "customer__tax_id")
    autocomplete_fields = ("customer",)

    change_actions = ("issue_action",)
    transition_actions = {"issue_action": SalesInvoice.Status.ISSUED}
    locked_fields = ("ncf_type", "quote", "issue_date", "due_date")

    @action(label="Issue", description="Issue the invoice and allocate its NCF")
    def issue_action(self, request, obj):
        self._run_transition(request, obj, SalesInvoice.Status.ISSUED)


class QuoteLineInline(LedgerLineInline):
    model = QuoteLine


@admin.register(Quote)
class QuoteAdmin(LedgerDocumentAdmin):
    inlines = [QuoteLineInline]
    list_display = ("issue_date", "number", "customer", "total_amount", "status", "valid_until")
    list_filter = ("status",)
    list_select_related = ("customer",)
    search_fields = ("number", "customer__name")
    autocomplete_fields = ("customer",)

    change_actions = ("send_action", "approve_action", "convert_action")
    transition_actions = {
        "send_action": Quote.Status.SENT,
        "approve_action": Quote.Status.APPROVED,
    }

    def get_change_actions(self, request, object_id, form_url):
        actions = super().get_change_actions(request, object_id, form_url)
        obj = self.get_object(request, object_id)
        if obj and obj.status == Quote.Status.APPROVED:
            actions += ("convert_action",)
        return actions

    @action(label="Send", description="Mark the quote as sent to the customer")
    def send_action(self, request, obj):
        self._run_transition(request, obj, Quote.Status.SENT)

    @action(label="Approve", description="Customer accepted the quote")
    def approve_action(self, request, obj):
        self._run_transition(request, obj, Quote.Status.APPROVED)

    @action(label="Convert to invoice", description="Create a draft invoice from this quote")
    def convert_action(self, request, obj):
        try:
            invoice = convert_quote_to_invoice(obj, by=request.user)
        except LedgerError as exc:
            self.message_user(request, f"Could not convert: {exc}", level=messages.ERROR)
            return None
        self.message_user(request, "Draft invoice created.", level=messages.SUCCESS)
        return redirect(reverse("admin:documents_salesinvoice_change", args=[invoice.pk]))


class PurchaseOrderLineInline(LedgerLineInline):
    model = PurchaseOrderLine


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(LedgerDocumentAdmin):
    inlines = [PurchaseOrderLineInline]
    list_display = ("issue_date", "number", "supplier", "total_amount", "status", "payment_status", "expected_date")
    list_select_related = ("supplier",)
    search_fields = ("number", "supplier__business_name", "supplier__commercial_name")
    autocomplete_fields = ("supplier",)

    change_actions = ("send_action", "confirm_action", "receive_action")
    transition_actions = {
        "send_action": PurchaseOrder.Status.SENT,
        "confirm_action": PurchaseOrder.Status.CONFIRMED,
        "receive_action": PurchaseOrder.Status.RECEIVED,
    }

    @action(label="Send", description="Send the order to the supplier")
    def send_action(self, request, obj):
        self._run_transition(request, obj, PurchaseOrder.Status.SENT)

    @action(label="Confirm", description="Supplier confirmed the order")
    def confirm_action(self, request, obj):
        self._run_transition(request, obj, PurchaseOrder.Status.CONFIRMED)

    @action(label="Receive", description="Goods received")
    def receive_action(self, request, obj):
        self._run_transition(request, obj, PurchaseOrder.Status.RECEIVED)


class SupplierInvoiceLineInline(LedgerLineInline):
    model = SupplierInvoiceLine


@admin.register(SupplierInvoice)
class SupplierInvoiceAdmin(LedgerDocumentAdmin):
    inlines = [SupplierInvoiceLineInline]
    list_display = (
        "issue_date", "number", "supplier_number", "supplier", "total_amount", "status", "payment_status", "due_date"
    )
    list_select_related = ("supplier",)
    search_fields = ("number", "supplier_number", "supplier__business_name")
    autocomplete_fields = ("supplier", "purchase_order")

    change_actions = ("approve_action",)
    transition_actions = {"approve_action": SupplierInvoice.Status.APPROVED}
    locked_fields = ("supplier_number", "purchase_order")

    @action(label="Approve", description="Approve the invoice for payment")
    def approve_action(self, request, obj):
        self._run_transition(request, obj, SupplierInvoice.Status.APPROVED)


class ExpenseLineInline(LedgerLineInline):
    model = ExpenseLine


@admin.register(Expense)
class ExpenseAdmin(LedgerDocumentAdmin):
    inlines = [ExpenseLineInline]
    list_display = ("issue_date", "number", "supplier", "category", "total_amount", "status", "payment_status")
    list_filter = ("status", "payment_status", "category")
    list_select_related = ("supplier", "category")
    search_fields = ("number", "supplier__business_name", "notes")
    autocomplete_fields = ("supplier",)

    change_actions = ("approve_action",)
    transition_actions = {"approve_action": Expense.Status.APPROVED}

    @action(label="Approve", description="Approve the expense")
    def approve_action(self, request, obj):
        self._run_transition(request, obj, Expense.Status.APPROVED)

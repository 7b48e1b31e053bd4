from django.contrib import admin, messages
from simple_history.admin import SimpleHistoryAdmin

from core.exceptions import LedgerError
from ledger.models import Payment
from ledger.services.settlement import reverse_payment


@admin.register(Payment)
class PaymentAdmin(SimpleHistoryAdmin):
    """Payments are created through apply_payment() only; here they can be
    inspected and reversed."""

    list_display = (
        "payment_date", "amount", "method", "reference_number",
        "sales_invoice", "purchase_order", "supplier_invoice", "expense", "created_by",
    )
    list_filter = ("method", "payment_date")
    search_fields = (
        "reference_number",
        "sales_invoice__number", "purchase_order__number", "supplier_invoice__number", "expense__number",
    )
    list_select_related = ("method", "sales_invoice", "purchase_order", "supplier_invoice", "expense")

    actions = ["reverse_selected"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_actions(self, request):
        actions = super().get_actions(request)
        actions.pop("delete_selected", None)
        return actions

    @admin.action(description="Reverse selected payments")
    def reverse_selected(self, request, queryset):
        ok = 0
        failed = 0

        for payment in queryset:
            try:
                reverse_payment(payment, by=request.user, reason="Reversed from admin")
                ok += 1
            except LedgerError as e:
                failed += 1
                self.message_user(request, f"Payment #{payment.pk} not reversed: {e}", level=messages.ERROR)

        if ok:
            self.message_user(request, f"Reversed {ok} payment(s).", level=messages.SUCCESS)
        if failed:
            self.message_user(request, f"Failed {failed} payment(s).", level=messages.ERROR)

from django.contrib import admin, messages

from masterdata.models import Customer, Supplier, Product, PaymentMethod, ExpenseCategory


class SoftDeleteAdminMixin:
    """Admin 'delete' becomes soft delete; a restore action undoes it."""

    actions = ("soft_delete_selected", "restore_selected")

    def get_actions(self, request):
        actions = super().get_actions(request)
        actions.pop("delete_selected", None)
        return actions

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description="Delete selected (soft)")
    def soft_delete_selected(self, request, queryset):
        for obj in queryset.alive():
            obj.soft_delete()
        self.message_user(request, "Deleted.", level=messages.SUCCESS)

    @admin.action(description="Restore selected")
    def restore_selected(self, request, queryset):
        for obj in queryset.deleted():
            obj.restore()
        self.message_user(request, "Restored.", level=messages.SUCCESS)


@admin.register(Customer)
class CustomerAdmin(SoftDeleteAdminMixin, admin.ModelAdmin):
    list_display = ("code", "name", "kind", "tax_id", "invoice_type", "payment_terms_days", "deleted_at")
    list_filter = ("kind", "invoice_type")
    search_fields = ("code", "name", "tax_id", "email")


@admin.register(Supplier)
class SupplierAdmin(SoftDeleteAdminMixin, admin.ModelAdmin):
    list_display = ("code", "business_name", "commercial_name", "tax_id", "payment_terms_days", "deleted_at")
    search_fields = ("code", "business_name", "commercial_name", "tax_id")


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "unit_measure", "sales_price", "purchase_cost", "default_tax_rate", "is_active")
    list_filter = ("is_active", "unit_measure")
    search_fields = ("code", "name")


@admin.register(PaymentMethod)
class PaymentMethodAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "requires_reference", "is_active")
    list_filter = ("is_active",)


@admin.register(ExpenseCategory)
class ExpenseCategoryAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "is_active")
    list_filter = ("is_active",)

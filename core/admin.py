from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from core.models import NumberSeries


@admin.register(NumberSeries)
class NumberSeriesAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "kind", "prefix", "width", "last_issued_sequence", "end_sequence", "valid_until", "is_active")
    list_filter = ("kind", "is_active")
    search_fields = ("code", "name")
    ordering = ("code",)

    # The counter only moves through allocate().
    readonly_fields = ("last_issued_sequence",)

    fieldsets = (
        (_("General"), {"fields": ("code", "name", "kind", "is_active")}),
        (_("Format"), {"fields": ("prefix", "width")}),
        (_("Authorised range"), {"fields": ("last_issued_sequence", "end_sequence", "valid_until")}),
    )

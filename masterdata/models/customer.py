from django.db import models
from django.utils.translation import gettext_lazy as _

from masterdata.models.soft_delete import SoftDeleteModel


class NcfType(models.TextChoices):
    """Fiscal receipt types; the value is also the NumberSeries code."""
    CREDITO_FISCAL = "B01", _("B01 Crédito fiscal")
    CONSUMO = "B02", _("B02 Consumo")
    GUBERNAMENTAL = "B14", _("B14 Gubernamental")
    EXPORTACION = "B15", _("B15 Exportación")


class Customer(SoftDeleteModel):
    """Customer (cliente). tax_id is the RNC or cédula printed on B01 invoices."""

    class Kind(models.TextChoices):
        INDIVIDUAL = "individual", _("Individual")
        CORPORATE = "corporate", _("Corporate")
        GOVERNMENT = "government", _("Government")

    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=255)
    kind = models.CharField(max_length=20, choices=Kind.choices, default=Kind.INDIVIDUAL)

    tax_id = models.CharField(max_length=20, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")

    # default NCF type for new invoices to this customer
    invoice_type = models.CharField(max_length=3, choices=NcfType.choices, default=NcfType.CONSUMO)

    payment_terms_days = models.PositiveIntegerField(default=30)
    credit_limit = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    class Meta:
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} {self.name}"

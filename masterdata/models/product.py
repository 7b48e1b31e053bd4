from decimal import Decimal

from django.db import models


class Product(models.Model):
    """Catalog entry. Prices here are the *current* catalog prices;
    document lines copy them when they are created."""

    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=255)

    unit_measure = models.CharField(max_length=20, default="unit")
    allows_fractional_quantity = models.BooleanField(default=False)

    sales_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    purchase_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    # ITBIS percentage applied when a line doesn't say otherwise
    default_tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("18.00"))

    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} {self.name}"

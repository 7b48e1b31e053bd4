from django.db import models

from masterdata.models.soft_delete import SoftDeleteModel


class Supplier(SoftDeleteModel):
    code = models.CharField(max_length=50, unique=True)
    business_name = models.CharField(max_length=255)
    commercial_name = models.CharField(max_length=255, blank=True, default="")

    tax_id = models.CharField(max_length=20, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")

    payment_terms_days = models.PositiveIntegerField(default=30)

    class Meta:
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} {self.name}"

    @property
    def name(self) -> str:
        return self.commercial_name or self.business_name

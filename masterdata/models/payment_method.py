from django.db import models


class PaymentMethod(models.Model):
    """Cash, transfer, cheque, card...

    requires_reference: the payment must carry a reference number
    (transfer id, cheque number).
    """

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=100)
    requires_reference = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class ExpenseCategory(models.Model):
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "Expense categories"

    def __str__(self):
        return self.name

from django.db import models


class NumberSeries(models.Model):
    """Simple, readable number series (NCF ranges and internal sequences).

    The important part is *concurrency safety*, implemented in
    core.services.numbering.allocate():
    - lock the NumberSeries row (select_for_update)
    - read last_issued_sequence
    - conditionally write last_issued_sequence + 1 (only if nobody else did)
    - return a formatted string (prefix + zero-padded number)

    Fiscal series (NCF) use their code as prefix and 8 digits:
        B01 -> B0100000001
    Internal series use a readable prefix:
        EXP -> EXP-000123
    """

    class Kind(models.TextChoices):
        FISCAL = "fiscal", "Fiscal (NCF)"
        INTERNAL = "internal", "Internal"

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=100, blank=True, default="")
    kind = models.CharField(max_length=10, choices=Kind.choices, default=Kind.INTERNAL)

    prefix = models.CharField(max_length=20, blank=True, default="")
    width = models.PositiveSmallIntegerField(default=8)

    last_issued_sequence = models.BigIntegerField(default=0)

    # authorised NCF range
    end_sequence = models.BigIntegerField(null=True, blank=True)
    valid_until = models.DateField(null=True, blank=True)

    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["code"]
        verbose_name_plural = "Number series"

    def __str__(self):
        return f"{self.code} ({self.format_number(self.last_issued_sequence)})"

    @property
    def max_sequence(self) -> int:
        """Highest sequence that still fits the width and the authorised range."""
        limit = 10 ** self.width - 1
        if self.end_sequence is not None:
            limit = min(limit, self.end_sequence)
        return limit

    @property
    def remaining(self) -> int:
        return max(0, self.max_sequence - self.last_issued_sequence)

    def format_number(self, sequence: int) -> str:
        return f"{self.prefix}{str(sequence).zfill(self.width)}"

    def allocate(self) -> str:
        """Allocate the next number of this series without duplicates."""
        from core.services.numbering import allocate
        return allocate(self.code)

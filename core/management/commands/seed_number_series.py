from django.core.management.base import BaseCommand
from django.db import transaction

from core.models import NumberSeries

FISCAL = NumberSeries.Kind.FISCAL
INTERNAL = NumberSeries.Kind.INTERNAL

# code, name, kind, prefix, width
STANDARD_SERIES = [
    ("B01", "Crédito Fiscal", FISCAL, "B01", 8),
    ("B02", "Consumo", FISCAL, "B02", 8),
    ("B14", "Gubernamental", FISCAL, "B14", 8),
    ("B15", "Exportación", FISCAL, "B15", 8),
    ("COT", "Cotizaciones", INTERNAL, "COT-", 6),
    ("PO", "Órdenes de compra", INTERNAL, "PO-", 6),
    ("SI", "Facturas de proveedor", INTERNAL, "SI-", 6),
    ("EXP", "Gastos", INTERNAL, "EXP-", 6),
]


class Command(BaseCommand):
    help = "Create the standard NCF and internal number series (existing counters are left alone)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--end-sequence",
            type=int,
            default=None,
            help="Upper bound of the authorised range for new fiscal series",
        )
        parser.add_argument(
            "--valid-until",
            default=None,
            help="Expiry date (YYYY-MM-DD) for new fiscal series",
        )

    @transaction.atomic
    def handle(self, *args, **opts):
        created = existing = 0

        for code, name, kind, prefix, width in STANDARD_SERIES:
            defaults = {"name": name, "kind": kind, "prefix": prefix, "width": width}
            if kind == FISCAL:
                defaults["end_sequence"] = opts["end_sequence"]
                defaults["valid_until"] = opts["valid_until"]

            _, was_created = NumberSeries.objects.get_or_create(code=code, defaults=defaults)
            created += int(was_created)
            existing += int(not was_created)

        self.stdout.write(self.style.SUCCESS(f"Number series: created={created}, existing={existing}"))

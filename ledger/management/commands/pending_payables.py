import datetime

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from ledger.services.open_items import list_pending_payables, list_pending_receivables, totals


def _parse_date(value):
    try:
        return datetime.date.fromisoformat(value)
    except ValueError as exc:
        raise CommandError(f"--as-of must be YYYY-MM-DD, got {value!r}") from exc


class Command(BaseCommand):
    help = "Print open payables (or receivables) with pending amount and days overdue"

    def add_arguments(self, parser):
        parser.add_argument(
            "--as-of",
            default=None,
            help="Reference date (YYYY-MM-DD), default today",
        )
        parser.add_argument(
            "--receivables",
            action="store_true",
            help="List open sales invoices instead of payables",
        )

    def handle(self, *args, **opts):
        as_of = _parse_date(opts["as_of"]) if opts["as_of"] else timezone.localdate()

        if opts["receivables"]:
            rows = list_pending_receivables(as_of)
        else:
            rows = list_pending_payables(as_of)

        for r in rows:
            line = (
                f"{r.family:<16} {r.number or '-':<14} {r.party_name[:30]:<30} "
                f"{str(r.due_date or '-'):<10} {r.total_amount:>12} {r.paid_amount:>12} "
                f"{r.pending_amount:>12}  {r.status_label}"
            )
            if r.integrity_warning:
                self.stdout.write(self.style.WARNING(line + "  (payments exceed total)"))
            elif r.is_overdue:
                self.stdout.write(self.style.ERROR(line))
            else:
                self.stdout.write(line)

        summary = totals(rows)
        self.stdout.write(
            self.style.SUCCESS(
                f"As of {as_of}: {summary['count']} open, pending={summary['pending']}, overdue={summary['overdue']}"
            )
        )

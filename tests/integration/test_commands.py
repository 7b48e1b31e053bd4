"""
Integration tests for the management commands.
"""
import datetime
import io

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from core.models import NumberSeries
from ledger.services.settlement import apply_payment

pytestmark = [pytest.mark.integration, pytest.mark.django_db]


def _run(*args):
    out = io.StringIO()
    call_command(*args, stdout=out)
    return out.getvalue()


class TestSeedNumberSeries:
    def test_creates_standard_series(self):
        output = _run("seed_number_series")

        assert "created=8, existing=0" in output
        assert set(NumberSeries.objects.values_list("code", flat=True)) == {
            "B01", "B02", "B14", "B15", "COT", "PO", "SI", "EXP",
        }
        assert NumberSeries.objects.get(code="B01").format_number(1) == "B0100000001"
        assert NumberSeries.objects.get(code="EXP").format_number(123) == "EXP-000123"

    def test_rerun_leaves_counters_alone(self):
        _run("seed_number_series")
        NumberSeries.objects.filter(code="B01").update(last_issued_sequence=41)

        output = _run("seed_number_series")

        assert "created=0, existing=8" in output
        assert NumberSeries.objects.get(code="B01").last_issued_sequence == 41

    def test_authorised_range_for_fiscal_series(self):
        _run("seed_number_series", "--end-sequence", "500", "--valid-until", "2025-12-31")

        b02 = NumberSeries.objects.get(code="B02")
        assert b02.end_sequence == 500
        assert b02.valid_until == datetime.date(2025, 12, 31)
        assert NumberSeries.objects.get(code="PO").end_sequence is None


class TestPendingPayablesCommand:
    def test_lists_rows_with_overdue_label(self, make_supplier_invoice, make_expense, cash):
        invoice = make_supplier_invoice("1000.00", due_date=datetime.date(2024, 1, 10))
        apply_payment(invoice, amount="400.00", method=cash)
        make_expense("75.00", issue_date=datetime.date(2024, 1, 20))

        output = _run("pending_payables", "--as-of", "2024-01-25")

        assert "SI-000001" in output
        assert "15 days overdue" in output
        assert "EXP-000001" in output
        assert "current" in output
        assert "2 open, pending=675.00, overdue=600.00" in output

    def test_receivables(self, issued_invoice):
        output = _run("pending_payables", "--receivables", "--as-of", "2024-01-25")

        assert "B0100000001" in output
        assert "1 open, pending=1062.00" in output

    def test_bad_date(self, db):
        with pytest.raises(CommandError):
            call_command("pending_payables", "--as-of", "25/01/2024")

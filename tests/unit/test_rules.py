"""
Unit tests for the small pure rules around the services: payment status
derivation, overdue days, number formatting and the error taxonomy.
"""
import datetime
from decimal import Decimal

import pytest

from core.exceptions import (
    AllocationContention,
    DocumentNotPayable,
    InvalidTransition,
    LedgerError,
    OverpaymentError,
    SeriesExhausted,
    SeriesExpired,
    SeriesNotFound,
    ValidationError,
)
from core.models import NumberSeries
from documents.models import PaymentStatus, SalesInvoice
from ledger.services.open_items import days_overdue
from ledger.services.settlement import derive_payment_status

pytestmark = pytest.mark.unit


class TestDerivePaymentStatus:
    @pytest.mark.parametrize(
        "total, paid, expected",
        [
            ("1062.00", "0.00", PaymentStatus.PENDING),
            ("1062.00", "0.01", PaymentStatus.PARTIAL),
            ("1062.00", "1061.99", PaymentStatus.PARTIAL),
            ("1062.00", "1062.00", PaymentStatus.PAID),
            ("1062.00", "1061.995", PaymentStatus.PAID),
            ("0.00", "0.00", PaymentStatus.PAID),
        ],
    )
    def test_status(self, total, paid, expected):
        assert derive_payment_status(Decimal(total), Decimal(paid)) == expected

    def test_tolerance_comes_from_settings(self, settings):
        settings.LEDGER = {**settings.LEDGER, "PAYMENT_TOLERANCE": "1.00"}

        assert derive_payment_status(Decimal("100.00"), Decimal("99.50")) == PaymentStatus.PAID


class TestDaysOverdue:
    def test_scenario_fifteen_days(self):
        assert days_overdue(datetime.date(2024, 1, 10), datetime.date(2024, 1, 25)) == 15

    def test_not_yet_due_is_zero(self):
        assert days_overdue(datetime.date(2024, 1, 10), datetime.date(2024, 1, 10)) == 0
        assert days_overdue(datetime.date(2024, 1, 10), datetime.date(2024, 1, 1)) == 0

    def test_no_due_date_is_zero(self):
        assert days_overdue(None, datetime.date(2024, 1, 1)) == 0


class TestNumberSeriesFormat:
    def test_fiscal_format(self):
        series = NumberSeries(code="B01", prefix="B01", width=8)

        assert series.format_number(6) == "B0100000006"

    def test_internal_format(self):
        series = NumberSeries(code="EXP", prefix="EXP-", width=6)

        assert series.format_number(123) == "EXP-000123"

    def test_max_sequence_is_the_smaller_of_width_and_range(self):
        assert NumberSeries(width=3).max_sequence == 999
        assert NumberSeries(width=8, end_sequence=500).max_sequence == 500

    def test_remaining(self):
        series = NumberSeries(width=2, last_issued_sequence=97)

        assert series.remaining == 2


class TestErrorTaxonomy:
    def test_only_contention_is_retryable(self):
        doc = SalesInvoice(status="draft")
        errors = [
            ValidationError("bad"),
            InvalidTransition(doc, "paid"),
            DocumentNotPayable(doc),
            OverpaymentError(Decimal("1"), Decimal("0")),
            SeriesNotFound("B01"),
            SeriesExhausted("B01", 99),
            SeriesExpired("B01", datetime.date(2024, 1, 1)),
        ]

        assert all(isinstance(e, LedgerError) for e in errors)
        assert not any(e.retryable for e in errors)
        assert AllocationContention("B01", 3).retryable

    def test_not_payable_is_an_invalid_transition(self):
        err = DocumentNotPayable(SalesInvoice(status="draft"))

        assert isinstance(err, InvalidTransition)
        assert err.target == "payment"

    def test_invalid_transition_message_names_both_states(self):
        err = InvalidTransition(SalesInvoice(status="voided"), "issued")

        assert "'voided'" in str(err)
        assert "'issued'" in str(err)

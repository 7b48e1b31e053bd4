"""
Integration tests for quote -> invoice and purchase order -> supplier
invoice conversion.
"""
import datetime
from decimal import Decimal

import pytest

from core.exceptions import DocumentNotPayable, InvalidTransition, OverpaymentError
from documents.models import PaymentStatus, PurchaseOrder, Quote, SalesInvoice, SupplierInvoice
from documents.services.conversion import convert_quote_to_invoice, receive_supplier_invoice
from documents.services.lifecycle import transition
from documents.services.lines import replace_items
from ledger.models import Payment
from ledger.services.settlement import apply_payment

pytestmark = [pytest.mark.integration, pytest.mark.django_db]


@pytest.fixture
def approved_quote(series, customer, product, service_product):
    quote = Quote.objects.create(customer=customer, notes="Entrega en obra")
    quote = replace_items(
        quote,
        [
            {"product": product, "quantity": 2, "discount_rate": 10},
            {"product": service_product, "quantity": "2.5"},
        ],
    )
    quote = transition(quote, Quote.Status.SENT)
    return transition(quote, Quote.Status.APPROVED)


class TestConvertQuote:
    def test_creates_draft_invoice_with_same_lines(self, approved_quote):
        invoice = convert_quote_to_invoice(approved_quote, issue_date=datetime.date(2024, 4, 1))

        assert invoice.status == SalesInvoice.Status.DRAFT
        assert invoice.number is None
        assert invoice.customer == approved_quote.customer
        assert invoice.quote == approved_quote
        assert invoice.ncf_type == "B01"
        assert invoice.notes == "Entrega en obra"
        assert invoice.issue_date == datetime.date(2024, 4, 1)
        assert invoice.total_amount == approved_quote.total_amount == Decimal("3562.00")

        quote_lines = list(approved_quote.lines.values_list("line_no", "product_id", "quantity", "total_amount"))
        invoice_lines = list(invoice.lines.values_list("line_no", "product_id", "quantity", "total_amount"))
        assert invoice_lines == quote_lines

    def test_quote_is_marked_converted(self, approved_quote):
        invoice = convert_quote_to_invoice(approved_quote)

        quote = Quote.objects.get(pk=approved_quote.pk)
        assert quote.status == Quote.Status.CONVERTED
        assert quote.invoice == invoice

    def test_explicit_ncf_type(self, approved_quote):
        invoice = convert_quote_to_invoice(approved_quote, ncf_type="B14")

        assert invoice.ncf_type == "B14"
        assert transition(invoice, SalesInvoice.Status.ISSUED).number == "B1400000001"

    def test_only_once(self, approved_quote):
        convert_quote_to_invoice(approved_quote)

        with pytest.raises(InvalidTransition):
            convert_quote_to_invoice(approved_quote)
        assert SalesInvoice.objects.count() == 1

    def test_quote_must_be_approved(self, series, customer, product):
        quote = replace_items(Quote.objects.create(customer=customer), [{"product": product}])
        quote = transition(quote, Quote.Status.SENT)

        with pytest.raises(InvalidTransition):
            convert_quote_to_invoice(quote)
        assert not SalesInvoice.objects.exists()


class TestReceiveSupplierInvoice:
    def test_copies_order_lines(self, confirmed_order):
        invoice = receive_supplier_invoice(
            confirmed_order, supplier_number="B0100004512", issue_date=datetime.date(2024, 2, 10)
        )

        assert invoice.status == SupplierInvoice.Status.PENDING
        assert invoice.purchase_order == confirmed_order
        assert invoice.supplier == confirmed_order.supplier
        assert invoice.supplier_number == "B0100004512"
        assert invoice.total_amount == Decimal("4130.00")
        assert invoice.lines.count() == 1

        order = PurchaseOrder.objects.get(pk=confirmed_order.pk)
        assert order.status == PurchaseOrder.Status.RECEIVED

    def test_partial_delivery_with_own_items(self, confirmed_order, product):
        invoice = receive_supplier_invoice(
            confirmed_order,
            supplier_number="B0100004513",
            due_date=datetime.date(2024, 3, 1),
            items=[{"product": product, "quantity": 4}],
        )

        # 4 x 350 + 18%
        assert invoice.total_amount == Decimal("1652.00")
        assert invoice.due_date == datetime.date(2024, 3, 1)

        approved = transition(invoice, SupplierInvoice.Status.APPROVED)
        assert approved.number == "SI-000001"
        assert approved.due_date == datetime.date(2024, 3, 1)

    def test_order_must_be_confirmed(self, series, supplier, product):
        order = replace_items(PurchaseOrder.objects.create(supplier=supplier), [{"product": product}])

        with pytest.raises(InvalidTransition):
            receive_supplier_invoice(order, supplier_number="B0100000001")
        assert not SupplierInvoice.objects.exists()

    def test_advances_move_to_the_invoice(self, confirmed_order, cash):
        _, advance = apply_payment(confirmed_order, amount="1000.00", method=cash)

        invoice = receive_supplier_invoice(confirmed_order, supplier_number="B0100004512")

        payment = Payment.objects.get(pk=advance.pk)
        assert payment.supplier_invoice_id == invoice.pk
        assert payment.purchase_order_id is None
        assert invoice.paid_amount() == Decimal("1000.00")
        assert invoice.payment_status == PaymentStatus.PARTIAL

        order = PurchaseOrder.objects.get(pk=confirmed_order.pk)
        assert order.payment_status == PaymentStatus.PENDING
        assert not order.accepts_payments
        with pytest.raises(DocumentNotPayable):
            apply_payment(order, amount="1.00", method=cash)

    def test_advance_larger_than_the_invoice(self, confirmed_order, product, cash):
        apply_payment(confirmed_order, amount="2000.00", method=cash)

        with pytest.raises(OverpaymentError):
            receive_supplier_invoice(
                confirmed_order,
                supplier_number="B0100004514",
                items=[{"product": product, "quantity": 4}],
            )

        assert not SupplierInvoice.objects.exists()
        assert PurchaseOrder.objects.get(pk=confirmed_order.pk).status == PurchaseOrder.Status.CONFIRMED
        assert Payment.objects.get().purchase_order_id == confirmed_order.pk

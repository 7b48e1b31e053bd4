"""
Pytest configuration and shared fixtures for the ledger test suite.

Database fixtures build the smallest realistic setup: the standard number
series, one customer, one supplier, a couple of products, two payment
methods and a draft invoice for 2 x 500.00 with 10% discount and 18% ITBIS.
"""
import datetime
import io
from decimal import Decimal

import pytest
from django.core.management import call_command

from core.models import NumberSeries
from documents.models import Expense, PurchaseOrder, SalesInvoice, SupplierInvoice
from documents.services.lifecycle import transition
from documents.services.lines import replace_items
from masterdata.models import Customer, ExpenseCategory, NcfType, PaymentMethod, Product, Supplier


@pytest.fixture
def series(db):
    """Standard NCF and internal series, all counters at 0."""
    call_command("seed_number_series", stdout=io.StringIO())
    return {s.code: s for s in NumberSeries.objects.all()}


@pytest.fixture
def customer(db) -> Customer:
    return Customer.objects.create(
        code="C001",
        name="Ferretería Central SRL",
        kind=Customer.Kind.CORPORATE,
        tax_id="101010101",
        invoice_type=NcfType.CREDITO_FISCAL,
        payment_terms_days=30,
    )


@pytest.fixture
def supplier(db) -> Supplier:
    return Supplier.objects.create(
        code="S001",
        business_name="Distribuidora del Caribe SRL",
        tax_id="130000001",
        payment_terms_days=15,
    )


@pytest.fixture
def product(db) -> Product:
    return Product.objects.create(
        code="P001",
        name="Cemento gris 42.5kg",
        sales_price=Decimal("500.00"),
        purchase_cost=Decimal("350.00"),
        default_tax_rate=Decimal("18.00"),
    )


@pytest.fixture
def service_product(db) -> Product:
    """Sold by the hour, fractional quantities allowed, ITBIS exempt."""
    return Product.objects.create(
        code="SVC01",
        name="Consultoría",
        unit_measure="hour",
        allows_fractional_quantity=True,
        sales_price=Decimal("1000.00"),
        purchase_cost=Decimal("1000.00"),
        default_tax_rate=Decimal("0.00"),
    )


@pytest.fixture
def cash(db) -> PaymentMethod:
    return PaymentMethod.objects.create(code="CASH", name="Efectivo")


@pytest.fixture
def transfer(db) -> PaymentMethod:
    return PaymentMethod.objects.create(code="TRF", name="Transferencia", requires_reference=True)


@pytest.fixture
def category(db) -> ExpenseCategory:
    return ExpenseCategory.objects.create(code="UTIL", name="Servicios públicos")


@pytest.fixture
def draft_invoice(series, customer, product) -> SalesInvoice:
    """Draft B01 invoice: 2 x 500.00, 10% discount, 18% tax -> 1062.00."""
    invoice = SalesInvoice.objects.create(customer=customer, issue_date=datetime.date(2024, 1, 2))
    return replace_items(invoice, [{"product": product, "quantity": 2, "discount_rate": 10}])


@pytest.fixture
def issued_invoice(draft_invoice) -> SalesInvoice:
    return transition(draft_invoice, SalesInvoice.Status.ISSUED)


@pytest.fixture
def make_supplier_invoice(series, supplier, service_product):
    """Factory: a supplier invoice for a single untaxed line of `amount`."""

    def make(amount="1000.00", *, issue_date=datetime.date(2024, 1, 1), due_date=None, approve=True, number="B0100000100"):
        invoice = SupplierInvoice.objects.create(
            supplier=supplier,
            supplier_number=number,
            issue_date=issue_date,
            due_date=due_date,
        )
        invoice = replace_items(
            invoice, [{"product": service_product, "quantity": 1, "unit_price": amount, "tax_rate": 0}]
        )
        if approve:
            invoice = transition(invoice, SupplierInvoice.Status.APPROVED)
        return invoice

    return make


@pytest.fixture
def make_expense(series, supplier, service_product, category):
    """Factory: an expense for a single untaxed line of `amount`."""

    def make(amount="250.00", *, issue_date=datetime.date(2024, 1, 5), approve=True, category=category):
        expense = Expense.objects.create(supplier=supplier, category=category, issue_date=issue_date)
        expense = replace_items(
            expense, [{"product": service_product, "quantity": 1, "unit_price": amount, "tax_rate": 0}]
        )
        if approve:
            expense = transition(expense, Expense.Status.APPROVED)
        return expense

    return make


@pytest.fixture
def confirmed_order(series, supplier, product) -> PurchaseOrder:
    """PO for 10 x 350.00 (+18%) = 4130.00, sent and confirmed."""
    order = PurchaseOrder.objects.create(supplier=supplier, issue_date=datetime.date(2024, 2, 1))
    order = replace_items(order, [{"product": product, "quantity": 10}])
    order = transition(order, PurchaseOrder.Status.SENT)
    return transition(order, PurchaseOrder.Status.CONFIRMED)

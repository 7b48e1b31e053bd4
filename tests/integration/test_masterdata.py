"""
Integration tests for master data: soft delete and catalog prices.
"""
from decimal import Decimal

import pytest

from documents.models import SalesInvoice
from masterdata.models import Customer, Supplier
from masterdata.services.catalog import PURCHASE, SALE, current_price, default_tax_rate

pytestmark = [pytest.mark.integration, pytest.mark.django_db]


class TestSoftDelete:
    def test_soft_delete_keeps_the_row(self, customer):
        customer.soft_delete()

        stored = Customer.objects.get(pk=customer.pk)
        assert stored.is_deleted
        assert not Customer.objects.alive().filter(pk=customer.pk).exists()
        assert Customer.objects.deleted().filter(pk=customer.pk).exists()

    def test_documents_survive_party_deletion(self, issued_invoice, customer):
        customer.soft_delete()

        invoice = SalesInvoice.objects.get(pk=issued_invoice.pk)
        assert invoice.customer == customer
        assert invoice.party_name == "Ferretería Central SRL"

    def test_restore(self, supplier):
        supplier.soft_delete()
        supplier.restore()

        assert Supplier.objects.alive().filter(pk=supplier.pk).exists()
        assert Supplier.objects.get(pk=supplier.pk).deleted_at is None

    def test_supplier_name_prefers_commercial_name(self, supplier):
        assert supplier.name == "Distribuidora del Caribe SRL"

        supplier.commercial_name = "DiCa"
        assert supplier.name == "DiCa"


class TestCatalog:
    def test_prices_by_purpose(self, product):
        assert current_price(product, SALE) == Decimal("500.00")
        assert current_price(product, PURCHASE) == Decimal("350.00")
        assert default_tax_rate(product) == Decimal("18.00")

    def test_unknown_purpose(self, product):
        with pytest.raises(ValueError):
            current_price(product, "rental")

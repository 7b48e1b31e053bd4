"""Catalog price lookup.

Document lines copy prices from here when they are created or when their
product changes; the money calculator never looks prices up itself.
"""

from decimal import Decimal

SALE = "sale"
PURCHASE = "purchase"


def current_price(product, purpose: str = SALE) -> Decimal:
    """Return the product's current catalog price for sales or purchases."""
    if purpose == SALE:
        return product.sales_price
    if purpose == PURCHASE:
        return product.purchase_cost
    raise ValueError(f"Unknown price purpose {purpose!r}")


def default_tax_rate(product) -> Decimal:
    return product.default_tax_rate

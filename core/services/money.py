"""Line and document amounts.

Pure functions, no database access. Every per-line amount is rounded to the
currency minor unit as soon as it is computed; document totals are plain
sums of those rounded line amounts so they always match what the user sees
on each line.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from core.exceptions import ValidationError

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value, field="amount") -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # repr() keeps 0.1 as 0.1
        value = repr(value)
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a number, got {value!r}.") from exc


def round2(value) -> Decimal:
    """Round half-up to two decimals."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineAmounts:
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    discount_rate: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def _check_rate(value, field) -> Decimal:
    rate = to_decimal(value, field)
    if rate < 0 or rate > HUNDRED:
        raise ValidationError(f"{field} must be between 0 and 100, got {rate}.")
    return rate


def compute_line(quantity, unit_price, tax_rate=0, discount_rate=0, *, whole_units=False) -> LineAmounts:
    """Compute discount, taxable base, tax and total for one line.

    Rates are percentages (18 means 18%). `whole_units` rejects fractional
    quantities for products sold per unit.

    Example:
        2 x 500.00, 10% discount, 18% tax
        -> discount 100.00, taxable 900.00, tax 162.00, total 1062.00
    """
    qty = to_decimal(quantity, "quantity")
    price = to_decimal(unit_price, "unit_price")

    if qty <= 0:
        raise ValidationError(f"quantity must be positive, got {qty}.")
    if whole_units and qty != qty.to_integral_value():
        raise ValidationError(f"quantity must be a whole number for this unit, got {qty}.")
    if price < 0:
        raise ValidationError(f"unit_price cannot be negative, got {price}.")

    tax = _check_rate(tax_rate, "tax_rate")
    discount = _check_rate(discount_rate, "discount_rate")

    gross = qty * price
    subtotal = round2(gross)
    discount_amount = round2(gross * discount / HUNDRED)
    taxable_amount = subtotal - discount_amount
    tax_amount = round2(taxable_amount * tax / HUNDRED)

    return LineAmounts(
        quantity=qty,
        unit_price=price,
        tax_rate=tax,
        discount_rate=discount,
        subtotal=subtotal,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        tax_amount=tax_amount,
        total_amount=taxable_amount + tax_amount,
    )


def compute_document_totals(lines: Iterable) -> DocumentTotals:
    """Sum already-rounded line amounts.

    Accepts LineAmounts or anything with the same attributes (line models).
    """
    subtotal = discount = tax = total = ZERO
    for line in lines:
        subtotal += line.subtotal
        discount += line.discount_amount
        tax += line.tax_amount
        total += line.total_amount
    return DocumentTotals(
        subtotal=subtotal,
        discount_amount=discount,
        tax_amount=tax,
        total_amount=total,
    )

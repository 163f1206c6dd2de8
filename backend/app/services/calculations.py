"""Invoice arithmetic: per-line amounts and invoice totals.

All money is handled as ``Decimal`` and rounded to cents with ROUND_HALF_UP at
the line level. Invoice totals are sums of the rounded line components, so
``subtotal + tax_amount == total`` holds exactly.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

CENTS = Decimal("0.01")
QUANTITY_STEP = Decimal("0.001")
ZERO = Decimal("0.00")


def to_decimal(value: Decimal | float | int | str | None) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def quantize_quantity(value: Decimal) -> Decimal:
    return value.quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineAmounts:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


def calculate_line(
    quantity: Decimal | float | int | None,
    unit_price: Decimal | float | int | None,
    tax_rate: Decimal | float | int | None,
) -> LineAmounts:
    """Compute a line's pre-tax subtotal, tax and tax-inclusive total.

    Inputs are not range checked here; a negative quantity simply yields a
    negative total. Validation belongs to the save path.

    Subtotal and tax are each rounded to cents, so ``total`` matches
    ``quantity * unit_price * (1 + tax_rate / 100)`` to the cent, not exactly.
    Compare against the exact product with a one cent tolerance.
    """
    subtotal = quantize_money(to_decimal(quantity) * to_decimal(unit_price))
    tax = quantize_money(subtotal * to_decimal(tax_rate) / Decimal("100"))
    return LineAmounts(subtotal=subtotal, tax=tax, total=subtotal + tax)


def calculate_invoice_totals(items: Iterable) -> InvoiceTotals:
    """Sum line subtotals and taxes for any objects exposing quantity, unit_price and tax_rate."""
    subtotal = ZERO
    tax_amount = ZERO
    for item in items:
        line = calculate_line(item.quantity, item.unit_price, item.tax_rate)
        subtotal += line.subtotal
        tax_amount += line.tax
    return InvoiceTotals(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)

"""Order totals: subtotal, flat-rate shipping and VAT."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from .config import FLAT_SHIPPING_FEE, FREE_SHIPPING_THRESHOLD, VAT_RATE
from .models import CartLine

CENTS = Decimal("0.01")


def money(value: Decimal | int | str) -> Decimal:
    """Quantize an amount to cents, rounding half up."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal


def shipping_for(subtotal: Decimal) -> Decimal:
    """Flat fee, waived when the subtotal is strictly above the threshold."""
    if subtotal > FREE_SHIPPING_THRESHOLD:
        return money(0)
    return money(FLAT_SHIPPING_FEE)


def compute_totals(subtotal: Decimal) -> OrderTotals:
    """
    Compute shipping, VAT and total for a subtotal.

    Tax is VAT on the subtotal only, rounded to cents. The total is the exact
    sum of the three rounded parts.
    """
    subtotal = money(subtotal)
    shipping = shipping_for(subtotal)
    tax = money(subtotal * VAT_RATE)
    return OrderTotals(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=subtotal + shipping + tax,
    )


def lines_subtotal(lines: Iterable[CartLine]) -> Decimal:
    return money(sum((line.line_total for line in lines), Decimal("0")))


def amount_until_free_shipping(subtotal: Decimal) -> Decimal:
    """How much more must be spent before shipping is waived (0 once it is)."""
    if subtotal > FREE_SHIPPING_THRESHOLD:
        return money(0)
    return money(FREE_SHIPPING_THRESHOLD - subtotal)

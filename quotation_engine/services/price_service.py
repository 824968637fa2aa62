"""
Price calculation service.

Every numeric input goes through parse_number(); stored values keep full
precision and only round_money()/format_money() round, for presentation.
"""

import logging
from typing import Any, Dict, Iterable, Optional
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

logger = logging.getLogger(__name__)

ZERO = Decimal('0')
HUNDRED = Decimal('100')
CENT = Decimal('0.01')

# Inputs must stay below 10**16 in magnitude
MAX_EXPONENT = 15


def try_parse_number(value: Any) -> Optional[Decimal]:
    """
    Convert user or stored input to Decimal.

    Accepts Decimal, int, float and numeric strings (a decimal comma is
    accepted). Returns None for None, empty strings, booleans, junk, NaN,
    infinities and values of 10**16 or more in magnitude.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        number = value
    else:
        text = str(value).strip().replace(',', '.')
        if not text:
            return None
        try:
            number = Decimal(text)
        except (InvalidOperation, ValueError):
            return None

    if not number.is_finite() or (number and number.adjusted() > MAX_EXPONENT):
        return None
    return number


def parse_number(value: Any, default: Optional[Decimal] = None) -> Decimal:
    """
    Parse-or-default conversion used by every numeric field.

    Args:
        value: Raw value
        default: Value returned when parsing fails (0 when omitted)

    Returns:
        Finite Decimal
    """
    number = try_parse_number(value)
    if number is None:
        return ZERO if default is None else default
    return number


def compute_unit_price(purchase_price: Any, margin: Any) -> Decimal:
    """
    Unit price = purchase_price * (1 + margin / 100).

    Args:
        purchase_price: Purchase price (any numeric input)
        margin: Margin percentage (any numeric input)

    Returns:
        Unit price (Decimal, full precision)
    """
    purchase_price = parse_number(purchase_price)
    margin = parse_number(margin)
    return purchase_price * (1 + margin / HUNDRED)


def line_total(item: Any) -> Decimal:
    """Quantity times unit price for a LineItem or a line dict."""
    if isinstance(item, dict):
        quantity = item.get('quantity')
        unit_price = item.get('unitPrice')
    else:
        quantity = item.quantity
        unit_price = item.unit_price
    return parse_number(quantity) * parse_number(unit_price)


def calculate_subtotal(line_items: Iterable[Any]) -> Decimal:
    """Sum of line totals, unrounded. Empty sequence gives 0."""
    subtotal = ZERO
    for item in line_items:
        subtotal += line_total(item)
    return subtotal


def calculate_tax(subtotal: Any, tax_rate: Any) -> Decimal:
    return parse_number(subtotal) * parse_number(tax_rate) / HUNDRED


def calculate_grand_total(subtotal: Any, tax: Any) -> Decimal:
    return parse_number(subtotal) + parse_number(tax)


def calculate_quote_totals(line_items: Iterable[Any], tax_rate: Any) -> Dict[str, Decimal]:
    """
    Calculate quote totals (subtotal, tax, grandTotal) at full precision.

    Args:
        line_items: LineItem objects or line dicts
        tax_rate: Tax rate percentage

    Returns:
        Dict with subtotal, tax, grandTotal
    """
    subtotal = calculate_subtotal(line_items)
    tax = calculate_tax(subtotal, tax_rate)
    return {
        "subtotal": subtotal,
        "tax": tax,
        "grandTotal": calculate_grand_total(subtotal, tax),
    }


def round_money(value: Any) -> Decimal:
    """Round to 2 decimals (ROUND_HALF_UP) for display."""
    return parse_number(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Any) -> str:
    return f"{round_money(value):.2f}"

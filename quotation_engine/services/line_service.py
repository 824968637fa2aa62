"""
Line item operations on an in-memory draft.

All functions mutate the given list in place. unitPrice is re-derived after
every numeric edit and every product selection; totals are never stored here.
"""

import logging
from dataclasses import replace
from typing import Any, List, Optional

from quotation_engine.schemas.quotation_model import (
    LineItem,
    LineItemField,
    NUMERIC_LINE_FIELDS,
    Product,
)
from quotation_engine.services.price_service import compute_unit_price, parse_number
from quotation_engine.shared.error_handling import ValidationError

logger = logging.getLogger(__name__)

_FIELD_ATTRIBUTES = {
    LineItemField.DESCRIPTION.value: "description",
    LineItemField.QUANTITY.value: "quantity",
    LineItemField.PURCHASE_PRICE.value: "purchase_price",
    LineItemField.MARGIN.value: "margin",
}


def _in_range(lines: List[LineItem], index: int) -> bool:
    return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(lines)


def recalculate_unit_price(line: LineItem) -> LineItem:
    line.unit_price = compute_unit_price(line.purchase_price, line.margin)
    return line


def add_line_item(lines: List[LineItem]) -> LineItem:
    """Append a fresh line item (quantity 1, zero prices)."""
    line = LineItem()
    lines.append(line)
    logger.debug(f"[ADD_LINE] Line count: {len(lines)}")
    return line


def remove_line_item(lines: List[LineItem], index: int) -> bool:
    """
    Remove a line item by position.

    Returns:
        True if removed, False if the index was out of range (no-op)
    """
    if not _in_range(lines, index):
        logger.warning(f"[REMOVE_LINE] Index {index} out of range for {len(lines)} lines, ignoring")
        return False

    del lines[index]
    logger.debug(f"[REMOVE_LINE] Removed line {index} | Line count: {len(lines)}")
    return True


def edit_line_item_field(lines: List[LineItem], index: int, field: str, value: Any) -> Optional[LineItem]:
    """
    Edit one field of a line item.

    Numeric fields are parsed with parse_number (0 on failure) and trigger a
    unitPrice re-derivation. description is stored verbatim.

    Args:
        lines: Draft line items
        index: Line position
        field: One of description, quantity, purchasePrice, margin
        value: Raw input value

    Returns:
        The edited line, or None if the index was out of range

    Raises:
        ValidationError: field is not editable
    """
    attribute = _FIELD_ATTRIBUTES.get(field)
    if attribute is None:
        raise ValidationError(f"Field '{field}' cannot be edited on a line item")

    if not _in_range(lines, index):
        logger.warning(f"[EDIT_LINE] Index {index} out of range for {len(lines)} lines, ignoring")
        return None

    line = lines[index]
    if field in NUMERIC_LINE_FIELDS:
        # Assign only once the new unit price is computed
        edited = replace(line, **{attribute: parse_number(value)})
        recalculate_unit_price(edited)
        setattr(line, attribute, getattr(edited, attribute))
        line.unit_price = edited.unit_price
    else:
        setattr(line, attribute, "" if value is None else str(value))

    return line


def select_product(lines: List[LineItem], index: int, product: Optional[Product]) -> Optional[LineItem]:
    """
    Bind a line item to a catalog product, or reset it when product is None.

    The product's description, purchase price and default margin are copied
    into the line; quantity is left unchanged.

    Returns:
        The updated line, or None if the index was out of range
    """
    if not _in_range(lines, index):
        logger.warning(f"[SELECT_PRODUCT] Index {index} out of range for {len(lines)} lines, ignoring")
        return None

    if product is None:
        lines[index] = LineItem()
        return lines[index]

    line = lines[index]
    line.description = product.description
    line.purchase_price = product.purchase_price
    line.margin = product.default_margin
    recalculate_unit_price(line)
    logger.debug(f"[SELECT_PRODUCT] Line {index} bound to product {product.id}")
    return line

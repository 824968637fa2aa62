"""
Input validation for quote and product drafts.
"""

from typing import Iterable, Optional

from .quotation_model import Quote, Product

MISSING_QUOTE_FIELDS_MESSAGE = (
    "Please fill in all required information (client name, quote number, "
    "and at least one line item with a description)."
)
MISSING_PRODUCT_FIELDS_MESSAGE = "Please fill in the product name and description."


def validate_quote_draft(
    draft: Quote,
    existing_quotes: Iterable[Quote] = (),
    allow_negative_amounts: bool = True
) -> tuple[bool, Optional[str]]:
    """
    Validate a quote draft before it is written.

    The quote number must already be filled in (auto-generation happens
    before validation) and unique among the user's other quotes.

    Returns:
        (is_valid, error_message)
    """
    if not draft.client_name.strip() or not draft.quote_number.strip():
        return False, MISSING_QUOTE_FIELDS_MESSAGE

    if not draft.line_items:
        return False, MISSING_QUOTE_FIELDS_MESSAGE

    if any(not item.description.strip() for item in draft.line_items):
        return False, MISSING_QUOTE_FIELDS_MESSAGE

    quote_number = draft.quote_number.strip()
    for other in existing_quotes:
        if other.id != draft.id and other.quote_number.strip() == quote_number:
            return False, f"Quote number {quote_number} is already used by another quote"

    if not allow_negative_amounts:
        if draft.tax_rate < 0:
            return False, "taxRate must be >= 0"
        for idx, item in enumerate(draft.line_items):
            if item.quantity < 0:
                return False, f"Line {idx + 1}: quantity must be >= 0"
            if item.purchase_price < 0:
                return False, f"Line {idx + 1}: purchasePrice must be >= 0"
            if item.margin < 0:
                return False, f"Line {idx + 1}: margin must be >= 0"

    return True, None


def validate_product_draft(
    draft: Product,
    allow_negative_amounts: bool = True
) -> tuple[bool, Optional[str]]:
    """
    Validate a product draft.

    Returns:
        (is_valid, error_message)
    """
    if not draft.name.strip() or not draft.description.strip():
        return False, MISSING_PRODUCT_FIELDS_MESSAGE

    if not allow_negative_amounts:
        if draft.purchase_price < 0:
            return False, "purchasePrice must be >= 0"
        if draft.default_margin < 0:
            return False, "defaultMargin must be >= 0"

    return True, None

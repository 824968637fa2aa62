"""
Product catalog helpers for the single product edit form.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from quotation_engine.schemas.quotation_model import Product
from quotation_engine.services.price_service import parse_number
from quotation_engine.shared.error_handling import ValidationError

logger = logging.getLogger(__name__)

_TEXT_FIELDS = {"name": "name", "description": "description"}
_NUMERIC_FIELDS = {"purchasePrice": "purchase_price", "defaultMargin": "default_margin"}


def new_product_draft() -> Product:
    return Product()


def load_product_for_edit(product: Product) -> Product:
    """Independent copy of a persisted product for the edit form."""
    return Product.from_dict(product.to_dict())


def edit_product_field(draft: Product, field: str, value: Any) -> Product:
    """
    Set one field on the product draft.

    Raises:
        ValidationError: field is not editable
    """
    if field in _NUMERIC_FIELDS:
        setattr(draft, _NUMERIC_FIELDS[field], parse_number(value))
    elif field in _TEXT_FIELDS:
        setattr(draft, _TEXT_FIELDS[field], "" if value is None else str(value))
    else:
        raise ValidationError(f"Field '{field}' cannot be edited on a product")
    return draft


def build_product_record(draft: Product) -> Dict[str, Any]:
    """Storage payload for a product (no id key)."""
    return Product.from_dict(draft.to_dict()).to_dict(include_id=False)


def find_product(products: Iterable[Product], product_id: Optional[str]) -> Optional[Product]:
    if not product_id:
        return None
    return next((product for product in products if product.id == product_id), None)

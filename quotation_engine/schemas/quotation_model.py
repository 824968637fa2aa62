"""
Data models for quotes, line items and catalog products.

Records are stored with camelCase keys; from_dict()/to_dict() convert between
the storage shape and the dataclasses.
"""

import copy
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from quotation_engine.services.price_service import parse_number, try_parse_number, compute_unit_price

DEFAULT_TAX_RATE = Decimal('20')


class CollectionName(str, Enum):
    """Storage collections under a user namespace."""
    QUOTES = "quotes"
    PRODUCTS = "products"


class LineItemField(str, Enum):
    """Editable line item fields."""
    DESCRIPTION = "description"
    QUANTITY = "quantity"
    PURCHASE_PRICE = "purchasePrice"
    MARGIN = "margin"


NUMERIC_LINE_FIELDS = {
    LineItemField.QUANTITY.value,
    LineItemField.PURCHASE_PRICE.value,
    LineItemField.MARGIN.value,
}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def today_iso() -> str:
    return date.today().isoformat()


@dataclass
class LineItem:
    """One priced entry on a quote."""

    description: str = ""
    quantity: Decimal = Decimal('1')
    purchase_price: Decimal = Decimal('0')
    margin: Decimal = Decimal('0')
    unit_price: Decimal = Decimal('0')

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineItem":
        """
        Import a stored line item.

        A stored non-zero unitPrice is kept as-is; a missing, zero or
        non-numeric one is recomputed from purchasePrice and margin.
        """
        purchase_price = parse_number(data.get("purchasePrice"))
        margin = parse_number(data.get("margin"))
        unit_price = try_parse_number(data.get("unitPrice")) or None
        return cls(
            description=data.get("description") or "",
            quantity=parse_number(data.get("quantity"), default=Decimal('1')),
            purchase_price=purchase_price,
            margin=margin,
            unit_price=unit_price if unit_price is not None else compute_unit_price(purchase_price, margin),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "quantity": self.quantity,
            "purchasePrice": self.purchase_price,
            "margin": self.margin,
            "unitPrice": self.unit_price,
        }


@dataclass
class Quote:
    """A priced, dated offer to a client."""

    id: Optional[str] = None
    client_name: str = ""
    client_address: str = ""
    client_email: str = ""
    quote_number: str = ""
    quote_date: str = field(default_factory=today_iso)
    line_items: List[LineItem] = field(default_factory=lambda: [LineItem()])
    tax_rate: Decimal = DEFAULT_TAX_RATE
    subtotal: Decimal = Decimal('0')
    tax: Decimal = Decimal('0')
    grand_total: Decimal = Decimal('0')
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Quote":
        return cls(
            id=data.get("id"),
            client_name=data.get("clientName") or "",
            client_address=data.get("clientAddress") or "",
            client_email=data.get("clientEmail") or "",
            quote_number=data.get("quoteNumber") or "",
            quote_date=data.get("quoteDate") or today_iso(),
            line_items=[LineItem.from_dict(item) for item in data.get("lineItems") or []],
            tax_rate=parse_number(data.get("taxRate"), default=DEFAULT_TAX_RATE),
            subtotal=parse_number(data.get("subtotal")),
            tax=parse_number(data.get("tax")),
            grand_total=parse_number(data.get("grandTotal")),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def to_dict(self, include_id: bool = True) -> Dict[str, Any]:
        data = {
            "clientName": self.client_name,
            "clientAddress": self.client_address,
            "clientEmail": self.client_email,
            "quoteNumber": self.quote_number,
            "quoteDate": self.quote_date,
            "lineItems": [item.to_dict() for item in self.line_items],
            "taxRate": self.tax_rate,
            "subtotal": self.subtotal,
            "tax": self.tax,
            "grandTotal": self.grand_total,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if include_id:
            data["id"] = self.id
        return data

    def clone(self) -> "Quote":
        return copy.deepcopy(self)


@dataclass
class Product:
    """Reusable catalog entry used to pre-fill line items."""

    id: Optional[str] = None
    name: str = ""
    description: str = ""
    purchase_price: Decimal = Decimal('0')
    default_margin: Decimal = Decimal('0')

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            description=data.get("description") or "",
            purchase_price=parse_number(data.get("purchasePrice")),
            default_margin=parse_number(data.get("defaultMargin")),
        )

    def to_dict(self, include_id: bool = True) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "description": self.description,
            "purchasePrice": self.purchase_price,
            "defaultMargin": self.default_margin,
        }
        if include_id:
            data["id"] = self.id
        return data

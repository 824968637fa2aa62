"""
Quote lifecycle business logic.

Builds drafts, loads persisted quotes back into drafts and assembles the
fully-computed record handed to the repository.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from quotation_engine.schemas.quotation_model import (
    DEFAULT_TAX_RATE,
    LineItem,
    Quote,
    today_iso,
)
from quotation_engine.services.price_service import calculate_quote_totals, round_money

logger = logging.getLogger(__name__)

LOG_PREFIX = "[QUOTE-SERVICE]"


def generate_quote_number(now: datetime) -> str:
    """
    Generate a quote number from a timestamp: DEV-YYMMDD-HHMMSS.

    Args:
        now: Local wall-clock time of the save

    Returns:
        Quote number
    """
    return now.strftime("DEV-%y%m%d-%H%M%S")


def new_quote_draft(default_tax_rate: Decimal = DEFAULT_TAX_RATE, today: Optional[str] = None) -> Quote:
    """Empty draft with one fresh line item and the default tax rate."""
    return Quote(
        quote_date=today or today_iso(),
        line_items=[LineItem()],
        tax_rate=default_tax_rate,
    )


def apply_totals(quote: Quote) -> Quote:
    """Recompute subtotal, tax and grandTotal from the quote's line items."""
    totals = calculate_quote_totals(quote.line_items, quote.tax_rate)
    quote.subtotal = totals["subtotal"]
    quote.tax = totals["tax"]
    quote.grand_total = totals["grandTotal"]
    return quote


def load_quote_for_edit(quote: Any) -> Quote:
    """
    Deep-copy a persisted quote into a draft.

    Stored records (dicts) go through Quote.from_dict, which recomputes a
    missing unitPrice from purchasePrice and margin. Stored totals are
    discarded and recomputed.

    Args:
        quote: Quote object or stored record dict

    Returns:
        Independent draft copy
    """
    if isinstance(quote, dict):
        draft = Quote.from_dict(quote)
    else:
        draft = Quote.from_dict(quote.to_dict())

    logger.info(f"{LOG_PREFIX} LOAD | ID: {str(draft.id)[:8]}... | Lines: {len(draft.line_items)}")
    return apply_totals(draft)


def build_quote_record(draft: Quote, now: datetime, existing: Optional[Quote] = None) -> Dict[str, Any]:
    """
    Assemble the persisted shape of a quote.

    Totals are recomputed from the draft, a blank quote number is generated
    from `now`, createdAt is preserved from `existing` on updates.

    Args:
        draft: Current draft (not modified)
        now: Local time of the save
        existing: Persisted quote being updated, if any

    Returns:
        Record dict without the id key
    """
    record = Quote.from_dict(draft.to_dict())
    record.quote_number = record.quote_number.strip() or generate_quote_number(now)
    apply_totals(record)

    timestamp = now.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    if existing is not None:
        record.created_at = existing.created_at or draft.created_at or timestamp
    else:
        record.created_at = timestamp
    record.updated_at = timestamp

    return record.to_dict(include_id=False)


def find_quote(quotes: Iterable[Quote], quote_id: Optional[str]) -> Optional[Quote]:
    if not quote_id:
        return None
    return next((quote for quote in quotes if quote.id == quote_id), None)


def summarize_quotes(quotes: Iterable[Quote]) -> List[Dict[str, Any]]:
    """
    Build list view rows, newest first.

    Returns:
        List of dicts with id, quoteNumber, clientName, quoteDate, grandTotal
    """
    rows = []
    for quote in quotes:
        totals = calculate_quote_totals(quote.line_items, quote.tax_rate)
        rows.append({
            "id": quote.id,
            "quoteNumber": quote.quote_number,
            "clientName": quote.client_name,
            "quoteDate": quote.quote_date,
            "grandTotal": round_money(totals["grandTotal"]),
            "createdAt": quote.created_at or "",
        })
    rows.sort(key=lambda row: row["createdAt"], reverse=True)
    return rows

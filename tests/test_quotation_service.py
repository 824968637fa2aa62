# tests/test_quotation_service.py
from datetime import datetime
from decimal import Decimal

from quotation_engine.schemas.quotation_model import LineItem, Quote
from quotation_engine.services.price_service import round_money
from quotation_engine.services.quotation_service import (
    build_quote_record,
    find_quote,
    generate_quote_number,
    load_quote_for_edit,
    new_quote_draft,
    summarize_quotes,
)


def _stored_quote(**overrides):
    record = {
        "id": "q1",
        "clientName": "ACME",
        "clientAddress": "1 rue de la Paix",
        "clientEmail": "buyer@acme.test",
        "quoteNumber": "DEV-240105-140307",
        "quoteDate": "2024-01-05",
        "lineItems": [
            {"description": "Service", "quantity": 3, "purchasePrice": 100, "margin": 20, "unitPrice": 120},
        ],
        "taxRate": 20,
        "subtotal": 999,
        "tax": 999,
        "grandTotal": 999,
        "createdAt": "2024-01-05T13:03:07Z",
        "updatedAt": "2024-01-05T13:03:07Z",
    }
    record.update(overrides)
    return record


def test_generate_quote_number():
    assert generate_quote_number(datetime(2024, 1, 5, 14, 3, 7)) == "DEV-240105-140307"


def test_new_draft_has_one_empty_line_and_default_tax():
    draft = new_quote_draft(Decimal("20"), today="2024-02-01")
    assert draft.id is None
    assert draft.quote_date == "2024-02-01"
    assert draft.tax_rate == Decimal("20")
    assert draft.line_items == [LineItem()]


def test_load_for_edit_recomputes_totals_from_lines():
    draft = load_quote_for_edit(_stored_quote())

    assert draft.id == "q1"
    assert round_money(draft.subtotal) == Decimal("360.00")
    assert round_money(draft.tax) == Decimal("72.00")
    assert round_money(draft.grand_total) == Decimal("432.00")


def test_load_for_edit_recomputes_missing_unit_price():
    stored = _stored_quote(lineItems=[
        {"description": "Legacy", "quantity": 2, "purchasePrice": 50, "margin": 10},
        {"description": "Very old", "quantity": 1},
    ])
    draft = load_quote_for_edit(stored)

    assert draft.line_items[0].unit_price == Decimal("55")
    assert draft.line_items[1].purchase_price == Decimal("0")
    assert draft.line_items[1].margin == Decimal("0")
    assert draft.line_items[1].unit_price == Decimal("0")


def test_load_for_edit_keeps_imported_unit_price():
    stored = _stored_quote(lineItems=[
        {"description": "Negotiated", "quantity": 1, "purchasePrice": 100, "margin": 20, "unitPrice": 115},
    ])
    draft = load_quote_for_edit(stored)
    assert draft.line_items[0].unit_price == Decimal("115")


def test_load_for_edit_is_a_deep_copy():
    persisted = Quote.from_dict(_stored_quote())
    draft = load_quote_for_edit(persisted)

    draft.line_items[0].description = "edited"
    draft.client_name = "Other"

    assert persisted.line_items[0].description == "Service"
    assert persisted.client_name == "ACME"


def test_build_record_generates_number_and_recomputes_totals():
    draft = new_quote_draft(Decimal("20"), today="2024-01-05")
    draft.client_name = "ACME"
    draft.line_items = [LineItem(description="Service", quantity=Decimal("3"), purchase_price=Decimal("100"),
                                 margin=Decimal("20"), unit_price=Decimal("120"))]
    draft.grand_total = Decimal("1")

    record = build_quote_record(draft, datetime(2024, 1, 5, 14, 3, 7))

    assert "id" not in record
    assert record["quoteNumber"] == "DEV-240105-140307"
    assert record["subtotal"] == Decimal("360")
    assert record["tax"] == Decimal("72")
    assert record["grandTotal"] == Decimal("432")
    assert record["createdAt"] == record["updatedAt"]
    assert record["createdAt"].endswith("Z")
    assert draft.quote_number == ""


def test_build_record_preserves_created_at_on_update():
    existing = Quote.from_dict(_stored_quote())
    draft = load_quote_for_edit(existing)

    record = build_quote_record(draft, datetime(2024, 3, 1, 9, 0, 0), existing=existing)

    assert record["createdAt"] == "2024-01-05T13:03:07Z"
    assert record["updatedAt"] != record["createdAt"]
    assert record["quoteNumber"] == "DEV-240105-140307"


def test_summarize_quotes_newest_first():
    older = Quote.from_dict(_stored_quote(id="a", createdAt="2024-01-01T00:00:00Z"))
    newer = Quote.from_dict(_stored_quote(id="b", createdAt="2024-02-01T00:00:00Z"))

    rows = summarize_quotes([older, newer])

    assert [row["id"] for row in rows] == ["b", "a"]
    assert rows[0]["grandTotal"] == Decimal("432.00")


def test_find_quote():
    quote = Quote.from_dict(_stored_quote())
    assert find_quote([quote], "q1") is quote
    assert find_quote([quote], "missing") is None
    assert find_quote([quote], "") is None


def test_load_for_edit_rederives_zero_unit_price():
    stored = _stored_quote(lineItems=[
        {"description": "Draft line", "quantity": 2, "purchasePrice": 100, "margin": 20, "unitPrice": 0},
    ])
    draft = load_quote_for_edit(stored)

    assert draft.line_items[0].unit_price == Decimal("120")
    assert round_money(draft.subtotal) == Decimal("240.00")

# tests/test_validation.py
from decimal import Decimal

from quotation_engine.schemas.quotation_model import LineItem, Product, Quote
from quotation_engine.schemas.validation import (
    MISSING_PRODUCT_FIELDS_MESSAGE,
    MISSING_QUOTE_FIELDS_MESSAGE,
    validate_product_draft,
    validate_quote_draft,
)


def _draft(**overrides):
    values = dict(
        client_name="ACME",
        quote_number="DEV-1",
        line_items=[LineItem(description="Service", quantity=Decimal("1"), unit_price=Decimal("10"))],
    )
    values.update(overrides)
    return Quote(**values)


def test_valid_draft():
    assert validate_quote_draft(_draft()) == (True, None)


def test_missing_client_name():
    assert validate_quote_draft(_draft(client_name="  ")) == (False, MISSING_QUOTE_FIELDS_MESSAGE)


def test_missing_quote_number():
    assert validate_quote_draft(_draft(quote_number="")) == (False, MISSING_QUOTE_FIELDS_MESSAGE)


def test_no_line_items():
    assert validate_quote_draft(_draft(line_items=[])) == (False, MISSING_QUOTE_FIELDS_MESSAGE)


def test_line_without_description():
    lines = [LineItem(description="ok"), LineItem(description="")]
    assert validate_quote_draft(_draft(line_items=lines)) == (False, MISSING_QUOTE_FIELDS_MESSAGE)


def test_duplicate_quote_number_rejected():
    other = _draft(id="other")
    is_valid, error = validate_quote_draft(_draft(), [other])
    assert not is_valid
    assert "DEV-1" in error


def test_quote_may_keep_its_own_number():
    persisted = _draft(id="q1")
    assert validate_quote_draft(_draft(id="q1"), [persisted]) == (True, None)


def test_negative_amounts_allowed_by_default():
    lines = [LineItem(description="Credit note", quantity=Decimal("-1"), purchase_price=Decimal("-50"))]
    assert validate_quote_draft(_draft(line_items=lines)) == (True, None)


def test_negative_amounts_rejected_when_disallowed():
    lines = [LineItem(description="Credit note", quantity=Decimal("-1"))]
    is_valid, error = validate_quote_draft(_draft(line_items=lines), allow_negative_amounts=False)
    assert not is_valid
    assert "quantity" in error

    is_valid, error = validate_quote_draft(_draft(tax_rate=Decimal("-5")), allow_negative_amounts=False)
    assert not is_valid
    assert "taxRate" in error


def test_product_requires_name_and_description():
    assert validate_product_draft(Product(name="Widget", description="")) == (False, MISSING_PRODUCT_FIELDS_MESSAGE)
    assert validate_product_draft(Product(name="", description="Steel")) == (False, MISSING_PRODUCT_FIELDS_MESSAGE)
    assert validate_product_draft(Product(name="Widget", description="Steel")) == (True, None)


def test_product_negative_price_policy():
    product = Product(name="Widget", description="Steel", purchase_price=Decimal("-1"))
    assert validate_product_draft(product) == (True, None)
    is_valid, error = validate_product_draft(product, allow_negative_amounts=False)
    assert not is_valid
    assert "purchasePrice" in error

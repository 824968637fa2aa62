# tests/test_product_service.py
from decimal import Decimal

import pytest

from quotation_engine.schemas.quotation_model import Product
from quotation_engine.services import product_service
from quotation_engine.shared.error_handling import ValidationError


def test_edit_fields():
    draft = product_service.new_product_draft()
    product_service.edit_product_field(draft, "name", "Widget")
    product_service.edit_product_field(draft, "purchasePrice", "12,5")
    product_service.edit_product_field(draft, "defaultMargin", "oops")

    assert draft.name == "Widget"
    assert draft.purchase_price == Decimal("12.5")
    assert draft.default_margin == Decimal("0")


def test_unknown_field_rejected():
    with pytest.raises(ValidationError):
        product_service.edit_product_field(Product(), "id", "p2")


def test_load_for_edit_is_independent():
    persisted = Product(id="p1", name="Widget", description="Steel", purchase_price=Decimal("10"))
    draft = product_service.load_product_for_edit(persisted)
    draft.name = "Changed"

    assert draft.id == "p1"
    assert persisted.name == "Widget"


def test_build_record_has_no_id():
    record = product_service.build_product_record(Product(id="p1", name="Widget", description="Steel"))
    assert record == {
        "name": "Widget",
        "description": "Steel",
        "purchasePrice": Decimal("0"),
        "defaultMargin": Decimal("0"),
    }


def test_find_product():
    product = Product(id="p1")
    assert product_service.find_product([product], "p1") is product
    assert product_service.find_product([product], None) is None

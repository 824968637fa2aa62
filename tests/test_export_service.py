# tests/test_export_service.py
from decimal import Decimal

from openpyxl import load_workbook

from quotation_engine.schemas.quotation_model import LineItem, Quote
from quotation_engine.services.export_service import (
    XLSX_CONTENT_TYPE,
    build_detail_view,
    detail_view_to_json,
    export_filename,
    render_workbook,
)


def _quote():
    return Quote(
        id="q1",
        client_name="ACME",
        client_address="1 rue de la Paix",
        client_email="buyer@acme.test",
        quote_number="DEV-240105-140307",
        quote_date="2024-01-05",
        line_items=[
            LineItem(description="Consulting day", quantity=Decimal("3"), purchase_price=Decimal("100"),
                     margin=Decimal("20"), unit_price=Decimal("120")),
            LineItem(description="Travel", quantity=Decimal("1"), purchase_price=Decimal("33.333"),
                     unit_price=Decimal("33.333")),
        ],
        tax_rate=Decimal("20"),
        grand_total=Decimal("1"),
    )


def test_detail_view_recomputes_and_rounds():
    view = build_detail_view(_quote())

    assert view["client"]["name"] == "ACME"
    assert view["lines"][1]["unitPrice"] == Decimal("33.33")
    assert view["lines"][1]["unitPriceText"] == "33.33"
    assert view["subtotal"] == Decimal("393.33")
    assert view["tax"] == Decimal("78.67")
    assert view["grandTotal"] == Decimal("472.00")
    assert view["grandTotalText"] == "472.00"


def test_detail_view_to_json():
    data = detail_view_to_json(build_detail_view(_quote()))
    assert data["lines"][0]["quantity"] == 3
    assert data["grandTotal"] == 472


def test_export_filename():
    assert export_filename("DEV-1", "xlsx") == "devis-DEV-1.xlsx"
    assert export_filename("DEV-1", ".pdf") == "devis-DEV-1.pdf"


def test_render_workbook():
    extension, content_type, output = render_workbook(build_detail_view(_quote()))

    assert extension == "xlsx"
    assert content_type == XLSX_CONTENT_TYPE

    ws = load_workbook(output).active
    rows = [row for row in ws.iter_rows(values_only=True)]
    assert rows[0] == ("Quote Number", "DEV-240105-140307", None, None)
    assert ("Description", "Quantity", "Unit Price", "Total") in rows
    assert ("Consulting day", 3, 120, 360) in rows
    assert rows[-1] == ("Grand Total", None, None, 472)

"""
Export service: detail view projection and Excel rendering.

The detail view is the stable, fully-resolved projection of one quote that
renderers capture; layout belongs to the renderer.
"""

import logging
from io import BytesIO
from typing import Any, Callable, Dict, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment

from quotation_engine.schemas.quotation_model import Quote
from quotation_engine.services.price_service import (
    calculate_quote_totals,
    format_money,
    line_total,
    round_money,
)
from quotation_engine.shared.serialization import convert_decimals_to_native

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

# A renderer takes a detail view and returns (file extension, content type, data)
Renderer = Callable[[Dict[str, Any]], Tuple[str, str, BytesIO]]


def build_detail_view(quote: Quote) -> Dict[str, Any]:
    """
    Build the read-only detail view of a persisted quote.

    Totals are recomputed from the line items; amounts are rounded to 2
    decimals and also given as formatted strings.

    Args:
        quote: Persisted quote

    Returns:
        Detail view dict
    """
    totals = calculate_quote_totals(quote.line_items, quote.tax_rate)

    lines = []
    for item in quote.line_items:
        total = line_total(item)
        lines.append({
            "description": item.description,
            "quantity": item.quantity,
            "unitPrice": round_money(item.unit_price),
            "lineTotal": round_money(total),
            "unitPriceText": format_money(item.unit_price),
            "lineTotalText": format_money(total),
        })

    return {
        "id": quote.id,
        "quoteNumber": quote.quote_number,
        "quoteDate": quote.quote_date,
        "client": {
            "name": quote.client_name,
            "address": quote.client_address,
            "email": quote.client_email,
        },
        "lines": lines,
        "taxRate": quote.tax_rate,
        "subtotal": round_money(totals["subtotal"]),
        "tax": round_money(totals["tax"]),
        "grandTotal": round_money(totals["grandTotal"]),
        "subtotalText": format_money(totals["subtotal"]),
        "taxText": format_money(totals["tax"]),
        "grandTotalText": format_money(totals["grandTotal"]),
    }


def detail_view_to_json(view: Dict[str, Any]) -> Dict[str, Any]:
    """JSON-safe copy of a detail view (Decimals converted)."""
    return convert_decimals_to_native(view)


def export_filename(quote_number: str, extension: str) -> str:
    return f"devis-{quote_number}.{extension.lstrip('.')}"


def render_workbook(view: Dict[str, Any]) -> Tuple[str, str, BytesIO]:
    """
    Render a detail view as an Excel workbook.

    Args:
        view: Detail view from build_detail_view

    Returns:
        ("xlsx", content type, BytesIO containing the workbook)
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Quote"

    ws.append(["Quote Number", view["quoteNumber"]])
    ws.append(["Date", view["quoteDate"]])
    ws.append(["Client", view["client"]["name"]])
    ws.append(["Address", view["client"]["address"]])
    ws.append(["Email", view["client"]["email"]])
    ws.append([])

    ws.append(["Description", "Quantity", "Unit Price", "Total"])
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal='center')

    for line in view["lines"]:
        ws.append([
            line["description"],
            float(line["quantity"]),
            float(line["unitPrice"]),
            float(line["lineTotal"]),
        ])

    ws.append([])
    ws.append(["Subtotal", None, None, float(view["subtotal"])])
    ws.append([f"Tax ({view['taxRate']}%)", None, None, float(view["tax"])])
    ws.append(["Grand Total", None, None, float(view["grandTotal"])])
    ws.cell(row=ws.max_row, column=1).font = Font(bold=True)
    ws.cell(row=ws.max_row, column=4).font = Font(bold=True)

    # Auto-adjust column widths
    for column in ws.columns:
        max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        ws.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)

    output = BytesIO()
    wb.save(output)
    output.seek(0)

    logger.info(f"[EXPORT] Rendered workbook for quote {view['quoteNumber']} | Lines: {len(view['lines'])}")
    return "xlsx", XLSX_CONTENT_TYPE, output

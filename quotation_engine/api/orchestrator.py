"""
Application orchestrator.

Coordinates user actions (edit line items, select products, save, delete,
export) against the draft state, the pricing services and the repository.
Every public action is an error boundary: failures become one user-visible
message on the returned ActionResult and never leave the draft partially
mutated.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Optional, Union

from quotation_engine.api.utils import ActionResult, create_error_result, create_result
from quotation_engine.config import EngineConfig
from quotation_engine.repository.base import Repository, Snapshot
from quotation_engine.schemas.quotation_model import Product, Quote
from quotation_engine.schemas.validation import validate_product_draft, validate_quote_draft
from quotation_engine.services import line_service, product_service
from quotation_engine.services.export_service import (
    Renderer,
    build_detail_view,
    detail_view_to_json,
    export_filename,
    render_workbook,
)
from quotation_engine.services.price_service import calculate_quote_totals, parse_number
from quotation_engine.services.quotation_service import (
    build_quote_record,
    find_quote,
    generate_quote_number,
    load_quote_for_edit,
    new_quote_draft,
    summarize_quotes,
)
from quotation_engine.shared.error_handling import (
    ExportUnavailable,
    StorageUnavailable,
    ValidationError,
)

logger = logging.getLogger(__name__)

LOG_PREFIX = "[QUOTE-APP]"

SAVE_IN_PROGRESS_MESSAGE = "A save is already in progress. Please wait."

_QUOTE_TEXT_FIELDS = {
    "clientName": "client_name",
    "clientAddress": "client_address",
    "clientEmail": "client_email",
    "quoteNumber": "quote_number",
    "quoteDate": "quote_date",
}


class View(str, Enum):
    """Screen the user is on."""
    CREATE = "create"
    LIST = "list"
    VIEW = "view"
    PRODUCTS = "products"


class EditState(str, Enum):
    """Whether the draft is a new quote or a loaded persisted one."""
    CREATING = "creating"
    EDITING = "editing"


class QuoteApp:
    """
    Single-user quote editor.

    Owns the draft quote and the product form; holds read-only cached lists of
    persisted quotes and products, replaced wholesale by repository snapshots.
    """

    def __init__(
        self,
        repository: Optional[Repository] = None,
        user_namespace: Optional[str] = None,
        config: Optional[EngineConfig] = None,
        renderer: Optional[Renderer] = render_workbook,
        clock: Optional[Callable[[], datetime]] = None,
        on_message: Optional[Callable[[str], Any]] = None
    ):
        self.config = config or (repository.config if repository is not None else EngineConfig())
        self.repository = repository
        self.user_namespace = user_namespace
        self.renderer = renderer
        self.clock = clock or datetime.now
        self.on_message = on_message

        self.quotes: List[Quote] = []
        self.products: List[Product] = []

        self.draft: Quote = new_quote_draft(self.config.default_tax_rate)
        self.editing_quote: Optional[Quote] = None
        self.selected_quote: Optional[Quote] = None

        self.product_draft: Product = product_service.new_product_draft()
        self.editing_product_id: Optional[str] = None

        self.view = View.CREATE
        self.last_message = ""

        self._unsubscribers: List[Callable[[], None]] = []
        self._save_in_flight = False
        self._product_save_in_flight = False

    async def __aenter__(self) -> "QuoteApp":
        result = await self.start()
        if not result.ok:
            raise result.error or StorageUnavailable(result.message)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ---------- reporting ----------

    def _report(self, result: ActionResult) -> ActionResult:
        if result.message:
            self.last_message = result.message
            if self.on_message is not None:
                self.on_message(result.message)
        return result

    def _fail(self, error: Exception, action: str) -> ActionResult:
        if isinstance(error, ValidationError):
            logger.warning(f"{LOG_PREFIX} {action.upper()} | Rejected: {error}")
        return self._report(create_error_result(error, action))

    def _require_storage(self) -> Repository:
        if self.repository is None or not self.user_namespace:
            raise StorageUnavailable("Repository or user namespace not initialized")
        return self.repository

    # ---------- state ----------

    @property
    def edit_state(self) -> EditState:
        return EditState.EDITING if self.editing_quote is not None else EditState.CREATING

    @property
    def is_saving(self) -> bool:
        return self._save_in_flight

    def totals(self) -> dict:
        """Current draft totals, recomputed from the line items."""
        return calculate_quote_totals(self.draft.line_items, self.draft.tax_rate)

    def quote_rows(self) -> List[dict]:
        return summarize_quotes(self.quotes)

    def _reset_draft(self) -> None:
        self.draft = new_quote_draft(self.config.default_tax_rate)
        self.editing_quote = None

    # ---------- subscriptions ----------

    async def start(self) -> ActionResult:
        """Subscribe to the user's quotes and products."""
        if self._unsubscribers:
            return create_result()

        try:
            repository = self._require_storage()
            self._unsubscribers.append(await repository.subscribe_quotes(
                self.user_namespace, self._on_quotes_snapshot, self._on_quotes_error
            ))
            self._unsubscribers.append(await repository.subscribe_products(
                self.user_namespace, self._on_products_snapshot, self._on_products_error
            ))
        except Exception as e:
            self.stop()
            return self._fail(e, "loading your data")

        logger.info(f"{LOG_PREFIX} START | Namespace: {self.user_namespace}")
        return create_result()

    def stop(self) -> None:
        """Release all subscriptions."""
        unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsubscribe in unsubscribers:
            unsubscribe()

    def _on_quotes_snapshot(self, snapshot: Snapshot) -> None:
        self.quotes = [Quote.from_dict(record) for record in snapshot]
        if self.selected_quote is not None:
            self.selected_quote = find_quote(self.quotes, self.selected_quote.id)
            if self.selected_quote is None and self.view == View.VIEW:
                self.view = View.LIST
        logger.debug(f"{LOG_PREFIX} SNAPSHOT | Quotes: {len(self.quotes)}")

    def _on_products_snapshot(self, snapshot: Snapshot) -> None:
        self.products = [Product.from_dict(record) for record in snapshot]
        logger.debug(f"{LOG_PREFIX} SNAPSHOT | Products: {len(self.products)}")

    def _on_quotes_error(self, error: Exception) -> None:
        self._fail(error, "loading quotes")

    def _on_products_error(self, error: Exception) -> None:
        self._fail(error, "loading products")

    # ---------- draft editing ----------

    def new_quote(self) -> ActionResult:
        self._reset_draft()
        self.selected_quote = None
        self.view = View.CREATE
        return create_result()

    def add_line_item(self) -> ActionResult:
        return create_result(data=line_service.add_line_item(self.draft.line_items))

    def remove_line_item(self, index: int) -> ActionResult:
        removed = line_service.remove_line_item(self.draft.line_items, index)
        return ActionResult(ok=removed)

    def edit_line_item_field(self, index: int, field: str, value: Any) -> ActionResult:
        try:
            line = line_service.edit_line_item_field(self.draft.line_items, index, field, value)
        except Exception as e:
            return self._fail(e, "editing the line item")
        return ActionResult(ok=line is not None, data=line)

    def select_product(self, index: int, product_id: Optional[str]) -> ActionResult:
        """Bind a line to a catalog product; an empty id resets the line."""
        product = None
        if product_id:
            product = product_service.find_product(self.products, product_id)
            if product is None:
                return self._fail(ValidationError("Selected product was not found."), "selecting a product")

        line = line_service.select_product(self.draft.line_items, index, product)
        return ActionResult(ok=line is not None, data=line)

    def set_quote_field(self, field: str, value: Any) -> ActionResult:
        if field == "taxRate":
            self.draft.tax_rate = parse_number(value)
        elif field in _QUOTE_TEXT_FIELDS:
            setattr(self.draft, _QUOTE_TEXT_FIELDS[field], "" if value is None else str(value))
        else:
            return self._fail(ValidationError(f"Field '{field}' cannot be edited on a quote"), "editing the quote")
        return create_result()

    # ---------- quote lifecycle ----------

    def _resolve_quote(self, quote: Union[Quote, str]) -> Quote:
        if isinstance(quote, Quote):
            return quote
        found = find_quote(self.quotes, quote)
        if found is None:
            raise ValidationError("Quote not found.")
        return found

    def edit_quote(self, quote: Union[Quote, str]) -> ActionResult:
        """Load a persisted quote into the draft."""
        try:
            persisted = self._resolve_quote(quote)
            draft = load_quote_for_edit(persisted)
        except Exception as e:
            return self._fail(e, "opening the quote")

        self.draft = draft
        self.editing_quote = persisted.clone()
        self.selected_quote = persisted
        self.view = View.CREATE
        return create_result(data=draft)

    def view_quote(self, quote: Union[Quote, str]) -> ActionResult:
        try:
            persisted = self._resolve_quote(quote)
        except Exception as e:
            return self._fail(e, "opening the quote")

        self.selected_quote = persisted
        self.view = View.VIEW
        return create_result(data=build_detail_view(persisted))

    async def save(self) -> ActionResult:
        """
        Validate the draft and issue exactly one create or update.

        On success the draft is cleared and the view switches to the list,
        unless another quote was loaded while the write was in flight.
        On any failure the draft is left untouched.
        """
        saved_draft = self.draft
        editing = self.editing_quote
        action = "updating the quote" if editing is not None else "saving the quote"

        if self._save_in_flight:
            logger.warning(f"{LOG_PREFIX} SAVE | Rejected: save already in flight")
            return self._report(ActionResult(ok=False, message=SAVE_IN_PROGRESS_MESSAGE))

        try:
            repository = self._require_storage()
            now = self.clock()
            candidate = Quote.from_dict(self.draft.to_dict())
            if not candidate.quote_number.strip():
                candidate.quote_number = generate_quote_number(now)

            is_valid, error = validate_quote_draft(
                candidate, self.quotes, self.config.allow_negative_amounts
            )
            if not is_valid:
                raise ValidationError(error)

            record = build_quote_record(candidate, now, existing=editing)
        except Exception as e:
            return self._fail(e, action)

        self._save_in_flight = True
        try:
            if editing is not None:
                await repository.update_quote(self.user_namespace, editing.id, record)
                quote_id = editing.id
            else:
                quote_id = await repository.create_quote(self.user_namespace, record)
        except Exception as e:
            return self._fail(e, action)
        finally:
            self._save_in_flight = False

        logger.info(f"{LOG_PREFIX} SAVE | ID: {str(quote_id)[:8]}... | Number: {record['quoteNumber']} | Lines: {len(record['lineItems'])}")
        if self.draft is saved_draft:
            self._reset_draft()
            self.selected_quote = None
            self.view = View.LIST
        message = "Quote updated successfully!" if editing is not None else "Quote saved successfully!"
        return self._report(create_result(message, data=quote_id))

    async def update(self) -> ActionResult:
        """Re-save the quote loaded with edit_quote()."""
        if self.editing_quote is None:
            return self._fail(ValidationError("No quote selected for update."), "updating the quote")
        return await self.save()

    async def delete_quote(self, quote_id: str) -> ActionResult:
        """Delete a persisted quote; it does not need to be loaded."""
        try:
            repository = self._require_storage()
            await repository.delete_quote(self.user_namespace, quote_id)
        except Exception as e:
            return self._fail(e, "deleting the quote")

        if self.selected_quote is not None and self.selected_quote.id == quote_id:
            self.selected_quote = None
            if self.view == View.VIEW:
                self.view = View.LIST

        logger.info(f"{LOG_PREFIX} DELETE | ID: {quote_id[:8]}...")
        return self._report(create_result("Quote deleted successfully!"))

    def export_quote(self) -> ActionResult:
        """
        Render the currently viewed quote to a downloadable file.

        Returns:
            ActionResult with data = {filename, content_type, data, summary}
        """
        try:
            if self.selected_quote is None or self.view != View.VIEW:
                raise ValidationError("Please select a quote to export.")
            if self.renderer is None:
                raise ExportUnavailable("No renderer configured")

            view = build_detail_view(self.selected_quote)
            try:
                extension, content_type, data = self.renderer(view)
            except Exception as e:
                raise ExportUnavailable(str(e)) from e
        except Exception as e:
            return self._fail(e, "exporting the quote")

        filename = export_filename(self.selected_quote.quote_number, extension)
        logger.info(f"{LOG_PREFIX} EXPORT | File: {filename}")
        return self._report(create_result(
            "Export generated successfully!",
            data={
                "filename": filename,
                "content_type": content_type,
                "data": data,
                "summary": detail_view_to_json(view),
            },
        ))

    # ---------- product catalog ----------

    def reset_product_form(self) -> ActionResult:
        self.product_draft = product_service.new_product_draft()
        self.editing_product_id = None
        return create_result()

    def edit_product(self, product: Union[Product, str]) -> ActionResult:
        if not isinstance(product, Product):
            found = product_service.find_product(self.products, product)
            if found is None:
                return self._fail(ValidationError("Product not found."), "opening the product")
            product = found

        self.product_draft = product_service.load_product_for_edit(product)
        self.editing_product_id = product.id
        self.view = View.PRODUCTS
        return create_result(data=self.product_draft)

    def edit_product_field(self, field: str, value: Any) -> ActionResult:
        try:
            product_service.edit_product_field(self.product_draft, field, value)
        except Exception as e:
            return self._fail(e, "editing the product")
        return create_result()

    async def save_product(self) -> ActionResult:
        """Create or update the product in the edit form."""
        saved_draft = self.product_draft
        product_id = editing_id = self.editing_product_id
        action = "updating the product" if product_id else "adding the product"

        if self._product_save_in_flight:
            return self._report(ActionResult(ok=False, message=SAVE_IN_PROGRESS_MESSAGE))

        try:
            repository = self._require_storage()
            is_valid, error = validate_product_draft(self.product_draft, self.config.allow_negative_amounts)
            if not is_valid:
                raise ValidationError(error)
            record = product_service.build_product_record(self.product_draft)
        except Exception as e:
            return self._fail(e, action)

        self._product_save_in_flight = True
        try:
            if product_id:
                await repository.update_product(self.user_namespace, product_id, record)
            else:
                product_id = await repository.create_product(self.user_namespace, record)
        except Exception as e:
            return self._fail(e, action)
        finally:
            self._product_save_in_flight = False

        message = "Product updated successfully!" if editing_id else "Product added successfully!"
        if self.product_draft is saved_draft:
            self.reset_product_form()
        logger.info(f"{LOG_PREFIX} SAVE-PRODUCT | ID: {str(product_id)[:8]}...")
        return self._report(create_result(message, data=product_id))

    async def delete_product(self, product_id: str) -> ActionResult:
        """Delete a catalog product; line items copied from it are unaffected."""
        try:
            repository = self._require_storage()
            await repository.delete_product(self.user_namespace, product_id)
        except Exception as e:
            return self._fail(e, "deleting the product")

        if self.editing_product_id == product_id:
            self.reset_product_form()
        return self._report(create_result("Product deleted successfully!"))

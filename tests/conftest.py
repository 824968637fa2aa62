# tests/conftest.py
"""
Shared fixtures for the quotation engine tests.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from quotation_engine.api.orchestrator import QuoteApp
from quotation_engine.config import EngineConfig
from quotation_engine.repository.memory_repository import InMemoryRepository

NAMESPACE = "user-123"
SAVE_TIME = datetime(2024, 1, 5, 14, 3, 7)


class RecordingRepository(InMemoryRepository):
    """In-memory repository that records write calls and can be told to fail."""

    def __init__(self, config=None):
        super().__init__(config)
        self.calls = []
        self.fail_on = set()

    def _maybe_fail(self, operation):
        if operation in self.fail_on:
            raise ConnectionError(f"{operation} rejected by backend")

    async def _create_record(self, collection, namespace, data):
        self.calls.append(("create", collection.value, None))
        self._maybe_fail("create")
        return await super()._create_record(collection, namespace, data)

    async def _update_record(self, collection, namespace, record_id, data):
        self.calls.append(("update", collection.value, record_id))
        self._maybe_fail("update")
        await super()._update_record(collection, namespace, record_id, data)

    async def _delete_record(self, collection, namespace, record_id):
        self.calls.append(("delete", collection.value, record_id))
        self._maybe_fail("delete")
        await super()._delete_record(collection, namespace, record_id)

    async def _list_records(self, collection, namespace):
        self._maybe_fail("list")
        return await super()._list_records(collection, namespace)


@pytest.fixture
def config():
    return EngineConfig(app_id="test-app")


@pytest.fixture
def repository(config):
    return RecordingRepository(config)


@pytest.fixture
def app(repository, config):
    return QuoteApp(
        repository=repository,
        user_namespace=NAMESPACE,
        config=config,
        clock=lambda: SAVE_TIME,
    )


@pytest.fixture
def product_record():
    return {
        "name": "Widget",
        "description": "Steel widget, 40mm",
        "purchasePrice": Decimal("100"),
        "defaultMargin": Decimal("20"),
    }


def fill_valid_draft(app, client_name="ACME", description="Consulting day"):
    app.set_quote_field("clientName", client_name)
    app.edit_line_item_field(0, "description", description)
    app.edit_line_item_field(0, "purchasePrice", "100")
    app.edit_line_item_field(0, "margin", "20")
    app.edit_line_item_field(0, "quantity", "3")


@pytest.fixture
def filled_app(app):
    fill_valid_draft(app)
    return app

"""
In-process repository used for local runs and tests.
"""

import copy
import uuid
from typing import Any, Dict, Optional

from quotation_engine.config import EngineConfig
from quotation_engine.schemas.quotation_model import CollectionName

from .base import Repository, Snapshot


class InMemoryRepository(Repository):
    """Stores records in dicts keyed by (namespace, collection)."""

    def __init__(self, config: Optional[EngineConfig] = None):
        super().__init__(config)
        self._records: Dict[tuple, Dict[str, Dict[str, Any]]] = {}

    def _bucket(self, collection: CollectionName, namespace: str) -> Dict[str, Dict[str, Any]]:
        return self._records.setdefault((namespace, collection), {})

    async def _create_record(self, collection: CollectionName, namespace: str, data: Dict[str, Any]) -> str:
        record_id = uuid.uuid4().hex
        record = copy.deepcopy(data)
        record.pop("id", None)
        self._bucket(collection, namespace)[record_id] = record
        return record_id

    async def _update_record(self, collection: CollectionName, namespace: str, record_id: str, data: Dict[str, Any]) -> None:
        bucket = self._bucket(collection, namespace)
        if record_id not in bucket:
            raise KeyError(f"{collection.value}/{record_id} not found")
        record = copy.deepcopy(data)
        record.pop("id", None)
        bucket[record_id].update(record)

    async def _delete_record(self, collection: CollectionName, namespace: str, record_id: str) -> None:
        bucket = self._bucket(collection, namespace)
        if record_id not in bucket:
            raise KeyError(f"{collection.value}/{record_id} not found")
        del bucket[record_id]

    async def _list_records(self, collection: CollectionName, namespace: str) -> Snapshot:
        return [
            {**copy.deepcopy(record), "id": record_id}
            for record_id, record in self._bucket(collection, namespace).items()
        ]

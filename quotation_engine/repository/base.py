"""
Repository contract required by the engine from external storage.

Every operation is a coroutine scoped to a user namespace and a collection
(quotes or products). Subscriptions push the full current collection on
subscribe and after every add/update/delete; listeners replace their cached
list with each snapshot.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from quotation_engine.config import EngineConfig
from quotation_engine.schemas.quotation_model import CollectionName
from quotation_engine.shared.error_handling import (
    QuotationEngineError,
    StorageOperationFailed,
    StorageUnavailable,
)

logger = logging.getLogger(__name__)

LOG_PREFIX = "[REPOSITORY]"

Snapshot = List[Dict[str, Any]]
SnapshotListener = Callable[[Snapshot], Any]
ErrorListener = Callable[[Exception], Any]
Unsubscribe = Callable[[], None]


async def _invoke(callback: Callable[..., Any], *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class Subscription:
    """A registered collection listener."""

    def __init__(
        self,
        repository: "Repository",
        namespace: str,
        collection: CollectionName,
        on_change: SnapshotListener,
        on_error: Optional[ErrorListener] = None
    ):
        self.repository = repository
        self.namespace = namespace
        self.collection = collection
        self.on_change = on_change
        self.on_error = on_error
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self.repository._remove_subscription(self)
        logger.info(f"{LOG_PREFIX} UNSUBSCRIBE | Collection: {self.collection.value} | Namespace: {self.namespace}")

    async def deliver(self, snapshot: Snapshot) -> None:
        if not self.active:
            return
        try:
            await _invoke(self.on_change, snapshot)
        except Exception as e:
            logger.error(f"{LOG_PREFIX} LISTENER | Collection: {self.collection.value} | Error: {str(e)}", exc_info=True)
            await self.fail(e)

    async def fail(self, error: Exception) -> None:
        if not self.active or self.on_error is None:
            return
        try:
            await _invoke(self.on_error, error)
        except Exception as e:
            logger.error(f"{LOG_PREFIX} ERROR-LISTENER | Collection: {self.collection.value} | Error: {str(e)}", exc_info=True)


class Repository(ABC):
    """
    Base class for storage adapters.

    Subclasses implement the four collection primitives (_create_record,
    _update_record, _delete_record, _list_records); this class adds namespace
    checks, error wrapping and snapshot broadcasting.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self._subscriptions: Dict[Tuple[str, CollectionName], List[Subscription]] = {}

    # ---------- backend primitives ----------

    @abstractmethod
    async def _create_record(self, collection: CollectionName, namespace: str, data: Dict[str, Any]) -> str:
        """Store a new record and return its id."""

    @abstractmethod
    async def _update_record(self, collection: CollectionName, namespace: str, record_id: str, data: Dict[str, Any]) -> None:
        """Overwrite an existing record; unknown ids must raise."""

    @abstractmethod
    async def _delete_record(self, collection: CollectionName, namespace: str, record_id: str) -> None:
        """Delete an existing record; unknown ids must raise."""

    @abstractmethod
    async def _list_records(self, collection: CollectionName, namespace: str) -> Snapshot:
        """Return every record of the collection, each including its id."""

    # ---------- quotes ----------

    async def create_quote(self, namespace: str, data: Dict[str, Any]) -> str:
        return await self._create(CollectionName.QUOTES, namespace, data)

    async def update_quote(self, namespace: str, quote_id: str, data: Dict[str, Any]) -> None:
        await self._update(CollectionName.QUOTES, namespace, quote_id, data)

    async def delete_quote(self, namespace: str, quote_id: str) -> None:
        await self._delete(CollectionName.QUOTES, namespace, quote_id)

    async def subscribe_quotes(
        self,
        namespace: str,
        on_change: SnapshotListener,
        on_error: Optional[ErrorListener] = None
    ) -> Unsubscribe:
        return await self._subscribe(CollectionName.QUOTES, namespace, on_change, on_error)

    # ---------- products ----------

    async def create_product(self, namespace: str, data: Dict[str, Any]) -> str:
        return await self._create(CollectionName.PRODUCTS, namespace, data)

    async def update_product(self, namespace: str, product_id: str, data: Dict[str, Any]) -> None:
        await self._update(CollectionName.PRODUCTS, namespace, product_id, data)

    async def delete_product(self, namespace: str, product_id: str) -> None:
        await self._delete(CollectionName.PRODUCTS, namespace, product_id)

    async def subscribe_products(
        self,
        namespace: str,
        on_change: SnapshotListener,
        on_error: Optional[ErrorListener] = None
    ) -> Unsubscribe:
        return await self._subscribe(CollectionName.PRODUCTS, namespace, on_change, on_error)

    # ---------- shared plumbing ----------

    @staticmethod
    def _require_namespace(namespace: Optional[str]) -> str:
        if not namespace or not str(namespace).strip():
            raise StorageUnavailable("No user namespace")
        return str(namespace)

    async def _guard(self, operation: str, call: Awaitable[Any]) -> Any:
        try:
            return await call
        except QuotationEngineError:
            raise
        except Exception as e:
            logger.error(f"{LOG_PREFIX} {operation.upper()} | Error: {str(e)}")
            raise StorageOperationFailed(operation, str(e)) from e

    async def _create(self, collection: CollectionName, namespace: str, data: Dict[str, Any]) -> str:
        namespace = self._require_namespace(namespace)
        record_id = await self._guard(f"create {collection.value}", self._create_record(collection, namespace, data))
        logger.info(f"{LOG_PREFIX} CREATE | Collection: {collection.value} | ID: {record_id[:8]}...")
        await self.publish(collection, namespace)
        return record_id

    async def _update(self, collection: CollectionName, namespace: str, record_id: str, data: Dict[str, Any]) -> None:
        namespace = self._require_namespace(namespace)
        await self._guard(f"update {collection.value}", self._update_record(collection, namespace, record_id, data))
        logger.info(f"{LOG_PREFIX} UPDATE | Collection: {collection.value} | ID: {record_id[:8]}...")
        await self.publish(collection, namespace)

    async def _delete(self, collection: CollectionName, namespace: str, record_id: str) -> None:
        namespace = self._require_namespace(namespace)
        await self._guard(f"delete {collection.value}", self._delete_record(collection, namespace, record_id))
        logger.info(f"{LOG_PREFIX} DELETE | Collection: {collection.value} | ID: {record_id[:8]}...")
        await self.publish(collection, namespace)

    async def _subscribe(
        self,
        collection: CollectionName,
        namespace: str,
        on_change: SnapshotListener,
        on_error: Optional[ErrorListener]
    ) -> Unsubscribe:
        namespace = self._require_namespace(namespace)
        snapshot = await self._guard(f"subscribe {collection.value}", self._list_records(collection, namespace))

        subscription = Subscription(self, namespace, collection, on_change, on_error)
        self._subscriptions.setdefault((namespace, collection), []).append(subscription)
        logger.info(f"{LOG_PREFIX} SUBSCRIBE | Collection: {collection.value} | Namespace: {namespace} | Records: {len(snapshot)}")

        await subscription.deliver(snapshot)
        return subscription.unsubscribe

    def _remove_subscription(self, subscription: Subscription) -> None:
        key = (subscription.namespace, subscription.collection)
        listeners = self._subscriptions.get(key, [])
        if subscription in listeners:
            listeners.remove(subscription)
        if not listeners:
            self._subscriptions.pop(key, None)

    def subscriber_count(self, namespace: str, collection: CollectionName) -> int:
        return len(self._subscriptions.get((namespace, collection), []))

    async def publish(self, collection: CollectionName, namespace: str) -> None:
        """
        Push the current collection to every listener of (namespace, collection).

        A failed read is reported to the listeners' error callbacks; it does not
        fail the write that triggered it.
        """
        listeners = list(self._subscriptions.get((namespace, collection), []))
        if not listeners:
            return

        try:
            snapshot = await self._list_records(collection, namespace)
        except Exception as e:
            logger.error(f"{LOG_PREFIX} PUBLISH | Collection: {collection.value} | Error: {str(e)}", exc_info=True)
            error = StorageOperationFailed(f"subscribe {collection.value}", str(e))
            for subscription in listeners:
                await subscription.fail(error)
            return

        logger.debug(f"{LOG_PREFIX} PUBLISH | Collection: {collection.value} | Records: {len(snapshot)} | Listeners: {len(listeners)}")
        for subscription in listeners:
            await subscription.deliver(snapshot)

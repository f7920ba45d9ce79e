"""
Ordered store contract.

The queue engine talks to storage only through this interface: create a
record under a generated key, read/update by key, read a whole collection,
and subscribe to full-collection snapshots.

There is no compare-and-swap. A read followed by a write is two separate
operations, and other clients may write in between.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable

QUEUE_COLLECTION = "queue"
REVENUE_COLLECTION = "revenue"

Record = dict[str, Any]
Snapshot = dict[str, Record]
SnapshotCallback = Callable[[Snapshot], None]
Unsubscribe = Callable[[], None]


class StoreError(Exception):
    """Transport or storage failure."""


class RecordNotFound(StoreError):
    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection}/{record_id} not found")


class UnknownCollection(StoreError):
    def __init__(self, collection: str):
        self.collection = collection
        super().__init__(f"Unknown collection: {collection}")


class OrderedStore(ABC):
    """Abstract ordered key-value store with change subscriptions."""

    @abstractmethod
    async def create(self, collection: str, record: Record) -> str:
        """Write a record under a newly generated id and return the id."""

    @abstractmethod
    async def get(self, collection: str, record_id: str) -> Record | None:
        """Read one record, or None if it doesn't exist."""

    @abstractmethod
    async def read_all(self, collection: str) -> Snapshot:
        """Read every record of a collection as a map of id to record."""

    @abstractmethod
    async def update(self, collection: str, record_id: str, fields: Record) -> None:
        """
        Merge fields into an existing record.

        Raises:
            RecordNotFound: if the id doesn't exist
        """

    @abstractmethod
    async def subscribe(self, collection: str, callback: SnapshotCallback) -> Unsubscribe:
        """
        Deliver the current snapshot to callback, then one snapshot per mutation.

        The returned function stops delivery and is safe to call repeatedly.
        """

    async def close(self) -> None:
        """Release resources held by the store."""


class SubscriberRegistry:
    """
    Listener bookkeeping shared by store implementations.

    Listeners are called in subscription order. A listener that raises
    does not stop delivery to the others.
    """

    def __init__(self, logger):
        self._listeners: dict[str, dict[int, SnapshotCallback]] = {}
        self._next_token = 0
        self._logger = logger

    def add(self, collection: str, callback: SnapshotCallback) -> Unsubscribe:
        token = self._next_token
        self._next_token += 1
        self._listeners.setdefault(collection, {})[token] = callback

        def unsubscribe() -> None:
            self._listeners.get(collection, {}).pop(token, None)

        return unsubscribe

    def has_listeners(self, collection: str) -> bool:
        return bool(self._listeners.get(collection))

    def publish(self, collection: str, snapshot: Snapshot) -> None:
        for callback in list(self._listeners.get(collection, {}).values()):
            try:
                callback(snapshot)
            except Exception:
                self._logger.exception("Subscriber for %s failed", collection)

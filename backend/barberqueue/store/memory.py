"""In-process store, used for tests and single-instance development."""

import copy
import logging
import uuid

from barberqueue.store.base import (
    OrderedStore,
    Record,
    RecordNotFound,
    Snapshot,
    SnapshotCallback,
    SubscriberRegistry,
    Unsubscribe,
)

logger = logging.getLogger(__name__)


class MemoryStore(OrderedStore):
    """
    Dict-backed store.

    Records keep insertion order, so ties in any sort key fall back to
    arrival order. Snapshots handed to callers are copies.
    """

    def __init__(self):
        self._collections: dict[str, Snapshot] = {}
        self._subscribers = SubscriberRegistry(logger)

    def _collection(self, name: str) -> Snapshot:
        return self._collections.setdefault(name, {})

    def _snapshot(self, collection: str) -> Snapshot:
        return copy.deepcopy(self._collection(collection))

    def _publish(self, collection: str) -> None:
        if self._subscribers.has_listeners(collection):
            self._subscribers.publish(collection, self._snapshot(collection))

    async def create(self, collection: str, record: Record) -> str:
        record_id = str(uuid.uuid4())
        self._collection(collection)[record_id] = dict(record)
        self._publish(collection)
        return record_id

    async def get(self, collection: str, record_id: str) -> Record | None:
        record = self._collection(collection).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def read_all(self, collection: str) -> Snapshot:
        return self._snapshot(collection)

    async def update(self, collection: str, record_id: str, fields: Record) -> None:
        records = self._collection(collection)
        if record_id not in records:
            raise RecordNotFound(collection, record_id)
        records[record_id].update(fields)
        self._publish(collection)

    async def subscribe(self, collection: str, callback: SnapshotCallback) -> Unsubscribe:
        unsubscribe = self._subscribers.add(collection, callback)
        callback(self._snapshot(collection))
        return unsubscribe

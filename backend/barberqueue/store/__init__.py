# Ordered store adapters
from barberqueue.store.base import (
    QUEUE_COLLECTION,
    REVENUE_COLLECTION,
    OrderedStore,
    RecordNotFound,
    StoreError,
    UnknownCollection,
)
from barberqueue.store.memory import MemoryStore

__all__ = [
    "QUEUE_COLLECTION",
    "REVENUE_COLLECTION",
    "OrderedStore",
    "RecordNotFound",
    "StoreError",
    "UnknownCollection",
    "MemoryStore",
]

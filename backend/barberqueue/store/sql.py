"""
SQLAlchemy-backed store.

Each collection maps to an ORM table. Subscribers are notified in-process
after every committed write made through this store instance; writes by
other processes are only seen on the next read.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from barberqueue.database import Base, create_session_maker
from barberqueue.models import QueueEntry, RevenueLog
from barberqueue.store.base import (
    QUEUE_COLLECTION,
    REVENUE_COLLECTION,
    OrderedStore,
    Record,
    RecordNotFound,
    Snapshot,
    SnapshotCallback,
    StoreError,
    SubscriberRegistry,
    Unsubscribe,
    UnknownCollection,
)

logger = logging.getLogger(__name__)

COLLECTION_MODELS: dict[str, type[Base]] = {
    QUEUE_COLLECTION: QueueEntry,
    REVENUE_COLLECTION: RevenueLog,
}


def _columns(model: type[Base]) -> list[str]:
    return [column.key for column in model.__table__.columns if column.key != "id"]


def _to_record(instance: Base) -> Record:
    return {key: getattr(instance, key) for key in _columns(type(instance))}


class SqlStore(OrderedStore):
    """Store backed by the queue_entries and revenue_logs tables."""

    def __init__(
        self,
        engine: AsyncEngine,
        session_maker: async_sessionmaker[AsyncSession] | None = None,
    ):
        self.engine = engine
        self.session_maker = session_maker or create_session_maker(engine)
        self._subscribers = SubscriberRegistry(logger)

    def _model(self, collection: str) -> type[Base]:
        try:
            return COLLECTION_MODELS[collection]
        except KeyError:
            raise UnknownCollection(collection) from None

    async def _publish(self, collection: str) -> None:
        if self._subscribers.has_listeners(collection):
            self._subscribers.publish(collection, await self.read_all(collection))

    async def create(self, collection: str, record: Record) -> str:
        model = self._model(collection)
        record_id = str(uuid.uuid4())
        async with self.session_maker() as session:
            session.add(model(id=record_id, **record))
            await session.commit()
        await self._publish(collection)
        return record_id

    async def get(self, collection: str, record_id: str) -> Record | None:
        model = self._model(collection)
        async with self.session_maker() as session:
            instance = await session.get(model, record_id)
            return _to_record(instance) if instance is not None else None

    async def read_all(self, collection: str) -> Snapshot:
        model = self._model(collection)
        async with self.session_maker() as session:
            result = await session.execute(select(model))
            return {instance.id: _to_record(instance) for instance in result.scalars().all()}

    async def update(self, collection: str, record_id: str, fields: Record) -> None:
        model = self._model(collection)
        allowed = set(_columns(model))
        unknown = set(fields) - allowed
        if unknown:
            raise StoreError(f"Unknown fields for {collection}: {sorted(unknown)}")

        async with self.session_maker() as session:
            instance = await session.get(model, record_id)
            if instance is None:
                raise RecordNotFound(collection, record_id)
            for key, value in fields.items():
                setattr(instance, key, value)
            await session.commit()
        await self._publish(collection)

    async def subscribe(self, collection: str, callback: SnapshotCallback) -> Unsubscribe:
        # Register before the initial read so no commit is missed. Changes
        # published during the read are held back until the initial
        # snapshot has been delivered.
        held: list[Snapshot] = []
        state = {"initial_sent": False}

        def deliver(snapshot: Snapshot) -> None:
            if state["initial_sent"]:
                callback(snapshot)
            else:
                held.append(snapshot)

        unsubscribe = self._subscribers.add(collection, deliver)
        try:
            snapshot = await self.read_all(collection)
        except Exception:
            unsubscribe()
            raise
        callback(snapshot)
        state["initial_sent"] = True
        for pending in held:
            callback(pending)
        held.clear()
        return unsubscribe

    async def close(self) -> None:
        await self.engine.dispose()

"""
Queue engine - admission, ordering and state transitions for the shop queue.

Entry lifecycle:

    join() -> waiting --serve()--> serving --complete()--> done
                 |                    |
                 +------remove()------+--> absent

done and absent are terminal. Position in line is derived from order_key
alone: lower order_key = earlier.

Known races (the store has no compare-and-swap):
- join() reads the queue then writes. Two joins for the same name or
  device landing within one round-trip can both be admitted.
- move_down() works from the caller's snapshot. If the live order changed
  since it was taken, the entry may land after a stale successor.
- serve() does not check whether someone else is already being served.
"""

import logging
import math
from typing import Callable, Iterable, Optional

from barberqueue.errors import (
    DeviceAlreadyQueued,
    EntryNotFound,
    InvalidAmount,
    InvalidTransition,
    NameAlreadyQueued,
)
from barberqueue.models import Channel, EntryStatus, ServiceType
from barberqueue.schemas.queue import Entry, PushTokens, RevenueLogEntry
from barberqueue.services.name_validator import normalize_name, validate_name
from barberqueue.store.base import (
    QUEUE_COLLECTION,
    REVENUE_COLLECTION,
    OrderedStore,
    RecordNotFound,
    Snapshot,
    Unsubscribe,
)
from barberqueue.utils.timezone import now_ms

logger = logging.getLogger(__name__)

ActiveCallback = Callable[[list[Entry]], None]


def sort_active(snapshot: Snapshot) -> list[Entry]:
    """Active entries from a raw snapshot, in line order."""
    entries = [Entry.from_record(entry_id, record) for entry_id, record in snapshot.items()]
    active = [entry for entry in entries if entry.is_active]
    # Stable sort: exact ties keep store order
    return sorted(active, key=lambda entry: (entry.order_key, entry.inserted_at))


def position_of(entry_id: str, entries: Iterable[Entry]) -> Optional[int]:
    """
    Number of waiting customers ahead of entry_id.

    Returns None if the entry is not waiting in the given list.
    """
    waiting = [entry.id for entry in entries if entry.status == EntryStatus.WAITING]
    try:
        return waiting.index(entry_id)
    except ValueError:
        return None


class QueueEngine:
    """Rules for one shop's queue, on top of an OrderedStore."""

    def __init__(self, store: OrderedStore, clock: Callable[[], int] = now_ms):
        self.store = store
        self.clock = clock

    # -------------------------------------------------------------------------
    # Admission
    # -------------------------------------------------------------------------

    async def join(
        self,
        name: str,
        service_type: Optional[ServiceType] = None,
        channel: Channel = Channel.ONLINE,
        device_id: Optional[str] = None,
        booking_hour: Optional[int] = None,
        push_tokens: Optional[PushTokens] = None,
    ) -> str:
        """
        Admit a customer to the end of the line.

        Returns:
            The new entry id

        Raises:
            EmptyName, TooShort, TooLong, InvalidName, BlockedName,
            NameAlreadyQueued, DeviceAlreadyQueued
        """
        validated = validate_name(name)
        channel = Channel(channel)
        is_online = channel == Channel.ONLINE

        existing = await self.store.read_all(QUEUE_COLLECTION)
        for record in existing.values():
            if record.get("status") not in (EntryStatus.WAITING.value, EntryStatus.SERVING.value):
                continue
            # Recompute when the cached key is missing
            existing_key = record.get("name_key") or normalize_name(record.get("name") or "")
            if existing_key == validated.name_key:
                raise NameAlreadyQueued()

        if is_online and device_id:
            for record in existing.values():
                if (
                    record.get("status") in (EntryStatus.WAITING.value, EntryStatus.SERVING.value)
                    and record.get("channel") == Channel.ONLINE.value
                    and record.get("device_id") == device_id
                ):
                    raise DeviceAlreadyQueued()

        now = self.clock()
        tokens = push_tokens if is_online and push_tokens else PushTokens()
        record = {
            "name": validated.cleaned_name,
            "name_key": validated.name_key,
            "service_type": ServiceType(service_type).value if service_type else None,
            "channel": channel.value,
            "device_id": device_id if is_online else None,
            "expo_push_token": tokens.expo_push_token,
            "web_push_token": tokens.web_push_token,
            "status": EntryStatus.WAITING.value,
            "order_key": now,
            "inserted_at": now,
            "booking_for": booking_hour,
            "completed_at": None,
            "amount_paid": None,
        }
        entry_id = await self.store.create(QUEUE_COLLECTION, record)
        logger.info("Customer %s joined (%s) as %s", validated.cleaned_name, channel.value, entry_id)
        return entry_id

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_entry(self, entry_id: str) -> Entry:
        record = await self.store.get(QUEUE_COLLECTION, entry_id)
        if record is None:
            raise EntryNotFound(entry_id)
        return Entry.from_record(entry_id, record)

    async def list_active(self) -> list[Entry]:
        """Waiting and serving entries, ascending by order_key."""
        return sort_active(await self.store.read_all(QUEUE_COLLECTION))

    async def list_revenue(self) -> list[RevenueLogEntry]:
        logs = await self.store.read_all(REVENUE_COLLECTION)
        return [RevenueLogEntry.from_record(log_id, record) for log_id, record in logs.items()]

    async def subscribe_active(self, callback: ActiveCallback) -> Unsubscribe:
        """
        Stream the live queue.

        callback gets the current active list right away, then a freshly
        sorted list after every change to the queue collection.
        """
        return await self.store.subscribe(
            QUEUE_COLLECTION,
            lambda snapshot: callback(sort_active(snapshot)),
        )

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def _update(self, entry_id: str, fields: dict) -> None:
        try:
            await self.store.update(QUEUE_COLLECTION, entry_id, fields)
        except RecordNotFound:
            raise EntryNotFound(entry_id) from None

    async def _require_active(self, entry_id: str, target: EntryStatus) -> Entry:
        entry = await self.get_entry(entry_id)
        if not entry.is_active:
            raise InvalidTransition(entry_id, entry.status.value, target.value)
        return entry

    async def serve(self, entry_id: str) -> None:
        """Mark an entry as being served. Serving an already-serving entry is a no-op."""
        entry = await self._require_active(entry_id, EntryStatus.SERVING)
        if entry.status == EntryStatus.SERVING:
            return
        await self._update(entry_id, {"status": EntryStatus.SERVING.value})
        logger.info("Serving %s (%s)", entry.name, entry_id)

    async def complete(self, entry_id: str, amount: float) -> str:
        """
        Finish a visit and log the payment.

        The entry update and the revenue log append are two separate
        writes. If the second fails, the entry stays done without a log.

        Returns:
            The new revenue log id
        """
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise InvalidAmount()
        try:
            amount = float(amount)
        except OverflowError:
            raise InvalidAmount() from None
        if not math.isfinite(amount) or amount < 0:
            raise InvalidAmount()

        entry = await self._require_active(entry_id, EntryStatus.DONE)
        completed_at = self.clock()
        await self._update(entry_id, {
            "status": EntryStatus.DONE.value,
            "completed_at": completed_at,
            "amount_paid": amount,
        })

        log_id = await self.store.create(REVENUE_COLLECTION, {
            "amount": amount,
            "service_type": entry.service_type.value if entry.service_type else None,
            "customer_name": entry.name,
            "timestamp": completed_at,
        })
        logger.info("Completed %s (%s), paid %.2f", entry.name, entry_id, amount)
        return log_id

    async def remove(self, entry_id: str) -> None:
        """Mark an entry absent. Removing an absent entry again is a no-op."""
        entry = await self.get_entry(entry_id)
        if entry.status == EntryStatus.ABSENT:
            return
        if not entry.is_active:
            raise InvalidTransition(entry_id, entry.status.value, EntryStatus.ABSENT.value)
        await self._update(entry_id, {"status": EntryStatus.ABSENT.value})
        logger.info("Removed %s (%s)", entry.name, entry_id)

    # -------------------------------------------------------------------------
    # Reordering
    # -------------------------------------------------------------------------

    async def move_down(self, entry_id: str, snapshot: list[Entry]) -> None:
        """
        Swap an entry with the one right after it in the caller's snapshot.

        No-op if the entry is last or not in the snapshot. Only the moved
        entry's order_key changes: it becomes successor.order_key + 1.
        """
        ids = [entry.id for entry in snapshot]
        try:
            index = ids.index(entry_id)
        except ValueError:
            return
        if index == len(snapshot) - 1:
            return

        successor = snapshot[index + 1]
        await self._update(entry_id, {"order_key": successor.order_key + 1})
        logger.info("Moved %s below %s", entry_id, successor.id)

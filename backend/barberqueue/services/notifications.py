"""
Queue notifications.

Watches successive live-queue snapshots and raises alerts through a
NotificationSink. Delivery (push, local notification, ...) is the sink's job.

Customer alerts, for the entry belonging to the watcher's device:
- "It is your turn" once when the entry becomes serving
- "Queue update" when 2, 1 or 0 waiting customers are ahead

Admin alerts, while the admin session is enabled:
- "New customer in queue" for the first newly waiting customer
- "Customer is now serving" for each entry that just started being served
"""

import logging
from typing import Optional, Protocol

from barberqueue.models import Channel, EntryStatus
from barberqueue.schemas.queue import Entry
from barberqueue.services.admin_session import AdminSession
from barberqueue.services.queue_engine import position_of

logger = logging.getLogger(__name__)

# Positions (customers ahead) that trigger a heads-up
NOTIFY_AHEAD_COUNTS = (2, 1, 0)


class NotificationSink(Protocol):
    def notify(self, title: str, body: str) -> None:
        ...


class LoggingNotificationSink:
    """Sink that only writes alerts to the log."""

    def notify(self, title: str, body: str) -> None:
        logger.info("Notification: %s - %s", title, body)


class QueueNotificationWatcher:
    """
    Turns queue snapshots into alerts.

    Feed it every snapshot from QueueEngine.subscribe_active(), in order.
    """

    def __init__(
        self,
        sink: NotificationSink,
        admin_session: Optional[AdminSession] = None,
        device_id: Optional[str] = None,
    ):
        self.sink = sink
        self.admin_session = admin_session
        self.device_id = device_id
        self._previous: list[Entry] = []
        self._last_ahead: Optional[int] = None
        self._served_notice_id: Optional[str] = None

    def handle_snapshot(self, entries: list[Entry]) -> None:
        self._handle_customer(entries)
        if self.admin_session is not None and self.admin_session.enabled:
            self._handle_admin(entries)
        self._previous = entries

    __call__ = handle_snapshot

    def _handle_customer(self, entries: list[Entry]) -> None:
        if not self.device_id:
            return

        mine = next(
            (
                entry for entry in entries
                if entry.channel == Channel.ONLINE
                and entry.device_id == self.device_id
                and entry.is_active
            ),
            None,
        )
        if mine is None:
            self._last_ahead = None
            self._served_notice_id = None
            return

        if mine.status == EntryStatus.SERVING:
            if self._served_notice_id != mine.id:
                self._served_notice_id = mine.id
                self.sink.notify("It is your turn", "Please go to the barber chair now.")
            return

        ahead = position_of(mine.id, entries)
        if ahead is None:
            return

        if ahead in NOTIFY_AHEAD_COUNTS and ahead != self._last_ahead:
            if ahead == 0:
                body = "You are next in line."
            else:
                body = f"{ahead} customer{'s' if ahead > 1 else ''} ahead of you."
            self.sink.notify("Queue update", body)

        self._last_ahead = ahead

    def _handle_admin(self, entries: list[Entry]) -> None:
        previous_by_id = {entry.id: entry for entry in self._previous}
        previous_waiting = {
            entry.id for entry in self._previous if entry.status == EntryStatus.WAITING
        }

        newly_joined = [
            entry for entry in entries
            if entry.status == EntryStatus.WAITING and entry.id not in previous_waiting
        ]
        if newly_joined:
            self.sink.notify("New customer in queue", f"{newly_joined[0].name} joined the queue.")

        for entry in entries:
            previous = previous_by_id.get(entry.id)
            if previous is None:
                continue
            if previous.status != EntryStatus.SERVING and entry.status == EntryStatus.SERVING:
                self.sink.notify("Customer is now serving", f"{entry.name} is now in service.")

"""Tests for queue alerts and the admin notification session."""

from barberqueue.models import Channel, EntryStatus
from barberqueue.schemas.queue import Entry
from barberqueue.services.admin_session import AdminSession
from barberqueue.services.notifications import QueueNotificationWatcher

DEVICE = "dev_me"


class RecordingSink:
    def __init__(self):
        self.sent = []

    def notify(self, title: str, body: str) -> None:
        self.sent.append((title, body))


def entry(entry_id, order_key, status=EntryStatus.WAITING, device_id=None, channel=Channel.WALK_IN):
    return Entry(
        id=entry_id,
        name=entry_id.title(),
        name_key=entry_id,
        channel=channel,
        device_id=device_id,
        status=status,
        order_key=order_key,
        inserted_at=order_key,
    )


def me(order_key, status=EntryStatus.WAITING):
    return entry("mine", order_key, status, device_id=DEVICE, channel=Channel.ONLINE)


class TestCustomerAlerts:
    def test_counts_down_from_two_ahead(self):
        sink = RecordingSink()
        watcher = QueueNotificationWatcher(sink, device_id=DEVICE)

        watcher.handle_snapshot([entry("a", 1), entry("b", 2), entry("c", 3), me(4)])
        assert sink.sent == []

        watcher.handle_snapshot([entry("b", 2), entry("c", 3), me(4)])
        watcher.handle_snapshot([entry("c", 3), me(4)])
        watcher.handle_snapshot([me(4)])

        assert sink.sent == [
            ("Queue update", "2 customers ahead of you."),
            ("Queue update", "1 customer ahead of you."),
            ("Queue update", "You are next in line."),
        ]

    def test_same_position_is_not_repeated(self):
        sink = RecordingSink()
        watcher = QueueNotificationWatcher(sink, device_id=DEVICE)

        watcher.handle_snapshot([entry("a", 1), me(2)])
        watcher.handle_snapshot([entry("a", 1), me(2), entry("z", 3)])

        assert sink.sent == [("Queue update", "1 customer ahead of you.")]

    def test_serving_entries_are_not_counted_ahead(self):
        sink = RecordingSink()
        watcher = QueueNotificationWatcher(sink, device_id=DEVICE)

        watcher.handle_snapshot([entry("a", 1, EntryStatus.SERVING), me(2)])

        assert sink.sent == [("Queue update", "You are next in line.")]

    def test_your_turn_once(self):
        sink = RecordingSink()
        watcher = QueueNotificationWatcher(sink, device_id=DEVICE)

        watcher.handle_snapshot([me(1, EntryStatus.SERVING)])
        watcher.handle_snapshot([me(1, EntryStatus.SERVING), entry("b", 2)])

        assert sink.sent == [("It is your turn", "Please go to the barber chair now.")]

    def test_leaving_resets_state(self):
        sink = RecordingSink()
        watcher = QueueNotificationWatcher(sink, device_id=DEVICE)

        watcher.handle_snapshot([me(1)])
        watcher.handle_snapshot([])
        watcher.handle_snapshot([me(5)])

        assert sink.sent == [
            ("Queue update", "You are next in line."),
            ("Queue update", "You are next in line."),
        ]

    def test_no_device_no_customer_alerts(self):
        sink = RecordingSink()
        watcher = QueueNotificationWatcher(sink)

        watcher.handle_snapshot([me(1)])

        assert sink.sent == []


class TestAdminAlerts:
    def test_only_while_session_enabled(self):
        sink = RecordingSink()
        session = AdminSession()
        watcher = QueueNotificationWatcher(sink, admin_session=session)

        watcher.handle_snapshot([entry("a", 1)])
        assert sink.sent == []

        session.set_enabled(True)
        watcher.handle_snapshot([entry("a", 1), entry("b", 2), entry("c", 3)])

        assert sink.sent == [("New customer in queue", "B joined the queue.")]

    def test_now_serving(self):
        sink = RecordingSink()
        watcher = QueueNotificationWatcher(sink, admin_session=AdminSession(enabled=True))

        watcher.handle_snapshot([entry("a", 1)])
        sink.sent.clear()
        watcher.handle_snapshot([entry("a", 1, EntryStatus.SERVING)])
        watcher.handle_snapshot([entry("a", 1, EntryStatus.SERVING)])

        assert sink.sent == [("Customer is now serving", "A is now in service.")]

    async def test_with_live_engine(self, engine):
        sink = RecordingSink()
        watcher = QueueNotificationWatcher(sink, admin_session=AdminSession(enabled=True))
        await engine.subscribe_active(watcher)

        entry_id = await engine.join("Karim", channel=Channel.WALK_IN)
        await engine.serve(entry_id)

        assert sink.sent == [
            ("New customer in queue", "Karim joined the queue."),
            ("Customer is now serving", "Karim is now in service."),
        ]


class TestAdminSession:
    def test_listener_gets_current_value_then_changes(self):
        session = AdminSession()
        seen = []
        unsubscribe = session.subscribe(seen.append)

        session.set_enabled(True)
        unsubscribe()
        unsubscribe()
        session.set_enabled(False)

        assert seen == [False, True]
        assert session.enabled is False

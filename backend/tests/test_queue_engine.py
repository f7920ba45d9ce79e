"""Tests for queue admission, ordering and state transitions."""

import math

import pytest

from barberqueue.errors import (
    BlockedName,
    DeviceAlreadyQueued,
    EntryNotFound,
    InvalidAmount,
    InvalidTransition,
    NameAlreadyQueued,
)
from barberqueue.models import Channel, EntryStatus, ServiceType
from barberqueue.schemas.queue import Entry, PushTokens
from barberqueue.services.queue_engine import position_of, sort_active
from barberqueue.store.base import QUEUE_COLLECTION, REVENUE_COLLECTION

from conftest import START_MS


def make_entry(entry_id: str, order_key: int, status: EntryStatus = EntryStatus.WAITING) -> Entry:
    return Entry(
        id=entry_id,
        name=entry_id,
        name_key=entry_id.lower(),
        channel=Channel.WALK_IN,
        status=status,
        order_key=order_key,
        inserted_at=order_key,
    )


class TestJoin:
    async def test_join_then_list_active(self, engine):
        entry_id = await engine.join("Sami", service_type=ServiceType.HAIR, channel=Channel.WALK_IN)

        active = await engine.list_active()
        assert len(active) == 1
        assert active[0].id == entry_id
        assert active[0].name == "Sami"
        assert active[0].status == EntryStatus.WAITING
        assert active[0].service_type == ServiceType.HAIR
        assert active[0].order_key == START_MS

    async def test_stores_cleaned_name_and_key(self, engine):
        entry_id = await engine.join("  Jean   Luc ", channel=Channel.WALK_IN)
        entry = await engine.get_entry(entry_id)
        assert entry.name == "Jean Luc"
        assert entry.name_key == "jeanluc"

    async def test_validation_errors_propagate(self, engine, store):
        with pytest.raises(BlockedName):
            await engine.join("Admin Guy")
        assert await store.read_all(QUEUE_COLLECTION) == {}

    async def test_same_name_any_casing_is_rejected(self, engine):
        await engine.join("Ali Khan", channel=Channel.WALK_IN)
        with pytest.raises(NameAlreadyQueued):
            await engine.join("  ali   KHAN", channel=Channel.WALK_IN)
        with pytest.raises(NameAlreadyQueued):
            await engine.join("Ali-Khan", channel=Channel.ONLINE, device_id="dev_2")

    async def test_name_is_free_again_after_terminal_state(self, engine):
        first = await engine.join("Ali Khan", channel=Channel.WALK_IN)
        await engine.remove(first)
        second = await engine.join("Ali Khan", channel=Channel.WALK_IN)
        assert second != first

    async def test_serving_entry_still_blocks_name(self, engine):
        entry_id = await engine.join("Ali Khan", channel=Channel.WALK_IN)
        await engine.serve(entry_id)
        with pytest.raises(NameAlreadyQueued):
            await engine.join("ali khan", channel=Channel.WALK_IN)

    async def test_missing_name_key_is_recomputed(self, engine, store):
        await store.create(QUEUE_COLLECTION, {
            "name": "Old Record",
            "channel": "walk-in",
            "status": "waiting",
            "order_key": 1,
            "inserted_at": 1,
        })
        with pytest.raises(NameAlreadyQueued):
            await engine.join("old record", channel=Channel.WALK_IN)

        active = await engine.list_active()
        assert [entry.name_key for entry in active] == ["oldrecord"]

        received = []
        await engine.subscribe_active(received.append)
        assert received[0][0].name_key == "oldrecord"

    async def test_same_online_device_is_rejected(self, engine):
        await engine.join("Sami", channel=Channel.ONLINE, device_id="dev_1")
        with pytest.raises(DeviceAlreadyQueued):
            await engine.join("Nadia", channel=Channel.ONLINE, device_id="dev_1")

    async def test_device_check_ignores_walk_ins_and_missing_device(self, engine):
        await engine.join("Sami", channel=Channel.WALK_IN, device_id="dev_1")
        await engine.join("Nadia", channel=Channel.ONLINE, device_id="dev_1")
        await engine.join("Rami", channel=Channel.ONLINE)
        await engine.join("Yusuf", channel=Channel.ONLINE)
        assert len(await engine.list_active()) == 4

    async def test_walk_in_does_not_keep_device_or_tokens(self, engine):
        entry_id = await engine.join(
            "Sami",
            channel=Channel.WALK_IN,
            device_id="dev_1",
            push_tokens=PushTokens(expo_push_token="ExponentPushToken[x]"),
        )
        entry = await engine.get_entry(entry_id)
        assert entry.device_id is None
        assert entry.expo_push_token is None

    async def test_online_keeps_device_tokens_and_booking(self, engine):
        entry_id = await engine.join(
            "Sami",
            channel=Channel.ONLINE,
            device_id="dev_1",
            booking_hour=16,
            push_tokens=PushTokens(web_push_token="web-token"),
        )
        entry = await engine.get_entry(entry_id)
        assert entry.device_id == "dev_1"
        assert entry.web_push_token == "web-token"
        assert entry.booking_for == 16

    async def test_concurrent_duplicate_joins_can_both_succeed(self, engine, store):
        # Read-then-write is not atomic: a join that read the queue before
        # another join's write does not see it.
        snapshot = await store.read_all(QUEUE_COLLECTION)
        original_read_all = store.read_all

        async def stale_read_all(collection):
            if collection == QUEUE_COLLECTION:
                return snapshot
            return await original_read_all(collection)

        store.read_all = stale_read_all
        await engine.join("Sami", channel=Channel.ONLINE, device_id="dev_1")
        await engine.join("Sami", channel=Channel.ONLINE, device_id="dev_1")
        store.read_all = original_read_all

        active = await engine.list_active()
        assert [entry.name for entry in active] == ["Sami", "Sami"]


class TestOrdering:
    async def test_active_sorted_by_order_key(self, engine, store):
        a = await engine.join("Alpha", channel=Channel.WALK_IN)
        b = await engine.join("Bravo", channel=Channel.WALK_IN)
        c = await engine.join("Charlie", channel=Channel.WALK_IN)
        await store.update(QUEUE_COLLECTION, a, {"order_key": START_MS + 10_000})

        assert [entry.id for entry in await engine.list_active()] == [b, c, a]

    async def test_terminal_entries_are_hidden(self, engine):
        a = await engine.join("Alpha", channel=Channel.WALK_IN)
        b = await engine.join("Bravo", channel=Channel.WALK_IN)
        c = await engine.join("Charlie", channel=Channel.WALK_IN)
        await engine.serve(a)
        await engine.complete(a, 10)
        await engine.remove(b)

        assert [entry.id for entry in await engine.list_active()] == [c]

    def test_exact_ties_keep_store_order(self):
        snapshot = {
            "x": make_entry("x", 100).model_dump(exclude={"id"}),
            "y": make_entry("y", 100).model_dump(exclude={"id"}),
            "z": make_entry("z", 50).model_dump(exclude={"id"}),
        }
        assert [entry.id for entry in sort_active(snapshot)] == ["z", "x", "y"]

    def test_position_counts_waiting_ahead(self):
        entries = [
            make_entry("a", 1, EntryStatus.SERVING),
            make_entry("b", 2),
            make_entry("c", 3),
        ]
        assert position_of("a", entries) is None
        assert position_of("b", entries) == 0
        assert position_of("c", entries) == 1
        assert position_of("missing", entries) is None


class TestTransitions:
    async def test_serve_then_complete(self, engine, store):
        entry_id = await engine.join("Sami", service_type=ServiceType.HAIR_AND_BEARD, channel=Channel.WALK_IN)
        await engine.serve(entry_id)
        assert (await engine.get_entry(entry_id)).status == EntryStatus.SERVING

        log_id = await engine.complete(entry_id, 15.0)

        entry = await engine.get_entry(entry_id)
        assert entry.status == EntryStatus.DONE
        assert entry.amount_paid == 15.0
        assert entry.completed_at is not None

        logs = await engine.list_revenue()
        assert len(logs) == 1
        assert logs[0].id == log_id
        assert logs[0].amount == 15.0
        assert logs[0].service_type == ServiceType.HAIR_AND_BEARD
        assert logs[0].customer_name == "Sami"
        assert logs[0].timestamp == entry.completed_at

    async def test_complete_without_service_logs_no_service(self, engine):
        entry_id = await engine.join("Sami", channel=Channel.WALK_IN)
        await engine.complete(entry_id, 0)
        logs = await engine.list_revenue()
        assert logs[0].service_type is None
        assert logs[0].amount == 0

    @pytest.mark.parametrize("amount", [-1, math.nan, math.inf, "10", True])
    async def test_complete_rejects_bad_amounts(self, engine, store, amount):
        entry_id = await engine.join("Sami", channel=Channel.WALK_IN)
        with pytest.raises(InvalidAmount):
            await engine.complete(entry_id, amount)
        assert (await engine.get_entry(entry_id)).status == EntryStatus.WAITING
        assert await store.read_all(REVENUE_COLLECTION) == {}

    async def test_complete_rejects_amount_too_large_for_float(self, engine, store):
        entry_id = await engine.join("Sami", channel=Channel.WALK_IN)
        with pytest.raises(InvalidAmount):
            await engine.complete(entry_id, 10**400)
        assert (await engine.get_entry(entry_id)).status == EntryStatus.WAITING
        assert await store.read_all(REVENUE_COLLECTION) == {}

    async def test_serve_is_idempotent(self, engine):
        entry_id = await engine.join("Sami", channel=Channel.WALK_IN)
        await engine.serve(entry_id)
        await engine.serve(entry_id)
        assert (await engine.get_entry(entry_id)).status == EntryStatus.SERVING

    async def test_two_entries_can_be_serving(self, engine):
        a = await engine.join("Alpha", channel=Channel.WALK_IN)
        b = await engine.join("Bravo", channel=Channel.WALK_IN)
        await engine.serve(a)
        await engine.serve(b)
        statuses = [entry.status for entry in await engine.list_active()]
        assert statuses == [EntryStatus.SERVING, EntryStatus.SERVING]

    async def test_remove_twice_is_a_no_op(self, engine):
        a = await engine.join("Alpha", channel=Channel.WALK_IN)
        b = await engine.join("Bravo", channel=Channel.WALK_IN)
        await engine.remove(a)
        await engine.remove(a)

        assert (await engine.get_entry(a)).status == EntryStatus.ABSENT
        assert [entry.id for entry in await engine.list_active()] == [b]

    async def test_terminal_states_reject_transitions(self, engine):
        done = await engine.join("Alpha", channel=Channel.WALK_IN)
        await engine.complete(done, 10)
        absent = await engine.join("Bravo", channel=Channel.WALK_IN)
        await engine.remove(absent)

        with pytest.raises(InvalidTransition):
            await engine.serve(done)
        with pytest.raises(InvalidTransition):
            await engine.complete(done, 10)
        with pytest.raises(InvalidTransition):
            await engine.remove(done)
        with pytest.raises(InvalidTransition):
            await engine.serve(absent)
        with pytest.raises(InvalidTransition):
            await engine.complete(absent, 10)
        assert len(await engine.list_revenue()) == 1

    @pytest.mark.parametrize("operation", ["serve", "remove"])
    async def test_unknown_entry(self, engine, operation):
        with pytest.raises(EntryNotFound):
            await getattr(engine, operation)("nope")

    async def test_complete_unknown_entry(self, engine):
        with pytest.raises(EntryNotFound):
            await engine.complete("nope", 10)


class TestMoveDown:
    async def _seed(self, store):
        ids = []
        for name, order_key in [("A", 10), ("B", 20), ("C", 30)]:
            ids.append(await store.create(
                QUEUE_COLLECTION,
                make_entry(name, order_key).model_dump(mode="json", exclude={"id"}),
            ))
        return ids

    async def test_first_moves_after_second(self, engine, store):
        a, b, c = await self._seed(store)
        snapshot = await engine.list_active()

        await engine.move_down(a, snapshot)

        assert (await engine.get_entry(a)).order_key == 21
        assert [entry.id for entry in await engine.list_active()] == [b, a, c]

    async def test_last_is_a_no_op(self, engine, store):
        a, b, c = await self._seed(store)
        snapshot = await engine.list_active()

        await engine.move_down(c, snapshot)

        assert (await engine.get_entry(c)).order_key == 30
        assert [entry.id for entry in await engine.list_active()] == [a, b, c]

    async def test_not_in_snapshot_is_a_no_op(self, engine, store):
        a, b, c = await self._seed(store)
        await engine.move_down(a, [])
        assert [entry.id for entry in await engine.list_active()] == [a, b, c]

    async def test_stale_snapshot_uses_old_successor(self, engine, store):
        a, b, c = await self._seed(store)
        snapshot = await engine.list_active()
        # B moved to the end after the snapshot was taken
        await store.update(QUEUE_COLLECTION, b, {"order_key": 40})

        await engine.move_down(a, snapshot)

        assert (await engine.get_entry(a)).order_key == 21
        assert [entry.id for entry in await engine.list_active()] == [a, c, b]

    async def test_vanished_entry(self, engine):
        snapshot = [make_entry("ghost", 10), make_entry("next", 20)]
        with pytest.raises(EntryNotFound):
            await engine.move_down("ghost", snapshot)


class TestSubscribeActive:
    async def test_initial_snapshot_then_one_per_change(self, engine):
        received = []
        unsubscribe = await engine.subscribe_active(received.append)
        assert received == [[]]

        a = await engine.join("Alpha", channel=Channel.WALK_IN)
        b = await engine.join("Bravo", channel=Channel.WALK_IN)
        await engine.serve(a)

        assert len(received) == 4
        assert [entry.id for entry in received[2]] == [a, b]
        assert received[3][0].status == EntryStatus.SERVING

        unsubscribe()
        unsubscribe()
        await engine.remove(b)
        assert len(received) == 4

    async def test_complete_only_changes_queue_once(self, engine):
        entry_id = await engine.join("Alpha", channel=Channel.WALK_IN)
        received = []
        await engine.subscribe_active(received.append)

        await engine.complete(entry_id, 20)

        # Revenue write goes to another collection
        assert len(received) == 2
        assert received[-1] == []

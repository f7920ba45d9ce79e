"""
Seed the database with a demo queue and a few weeks of revenue.

Run with: python -m scripts.seed_data
"""

import asyncio
import random
from datetime import timedelta

from barberqueue.database import create_engine_from_settings, init_db
from barberqueue.models import Channel, ServiceType
from barberqueue.services.queue_engine import QueueEngine
from barberqueue.store.base import REVENUE_COLLECTION
from barberqueue.store.sql import SqlStore
from barberqueue.utils.timezone import to_ms, utc_now

# Customers currently in line
DEMO_QUEUE = [
    {"name": "Omar", "service_type": ServiceType.HAIR, "channel": Channel.WALK_IN},
    {"name": "Lukas Weber", "service_type": ServiceType.HAIR_AND_BEARD, "channel": Channel.ONLINE,
     "device_id": "dev_seed_lukas"},
    {"name": "Jonas", "service_type": None, "channel": Channel.WALK_IN},
    {"name": "Mehmet", "service_type": ServiceType.ORGANIZE_TRIM, "channel": Channel.ONLINE,
     "device_id": "dev_seed_mehmet", "booking_hour": 17},
]

# Typical prices per service
PRICES = {
    ServiceType.HAIR: 20.0,
    ServiceType.HAIR_AND_BEARD: 30.0,
    ServiceType.ORGANIZE_TRIM: 12.0,
}

HISTORY_DAYS = 45


async def seed_queue(engine: QueueEngine) -> None:
    active = await engine.list_active()
    if active:
        print(f"  Queue already has {len(active)} customers, skipping")
        return
    for customer in DEMO_QUEUE:
        entry_id = await engine.join(**customer)
        print(f"  Added {customer['name']} ({entry_id})")


async def seed_revenue(store: SqlStore) -> None:
    existing = await store.read_all(REVENUE_COLLECTION)
    if existing:
        print(f"  Revenue log already has {len(existing)} entries, skipping")
        return

    rng = random.Random(42)
    now = utc_now()
    count = 0
    for days_ago in range(HISTORY_DAYS, 0, -1):
        day = now - timedelta(days=days_ago)
        for _ in range(rng.randint(0, 9)):
            service = rng.choice([None, *PRICES])
            amount = PRICES.get(service, 15.0)
            timestamp = day.replace(hour=rng.randint(9, 18), minute=rng.randint(0, 59))
            await store.create(REVENUE_COLLECTION, {
                "amount": amount,
                "service_type": service.value if service else None,
                "customer_name": None,
                "timestamp": to_ms(timestamp),
            })
            count += 1
    print(f"  Added {count} revenue log entries")


async def main():
    engine = create_engine_from_settings()
    await init_db(engine)
    store = SqlStore(engine)

    print("Seeding queue...")
    await seed_queue(QueueEngine(store))
    print("Seeding revenue...")
    await seed_revenue(store)

    await store.close()
    print("Done.")


if __name__ == "__main__":
    asyncio.run(main())

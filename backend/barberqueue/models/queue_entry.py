"""QueueEntry model - one customer's visit through the shop queue."""

import uuid
from enum import Enum

from sqlalchemy import BigInteger, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from barberqueue.database import Base


class ServiceType(str, Enum):
    """Services a customer can pick when joining."""
    HAIR = "Hair"
    HAIR_AND_BEARD = "Hair & Beard"
    ORGANIZE_TRIM = "Organize/Trim"


class Channel(str, Enum):
    """How the entry was created."""
    ONLINE = "online"    # Customer's own device
    WALK_IN = "walk-in"  # Added by shop staff


class EntryStatus(str, Enum):
    """Lifecycle states of a queue entry."""
    WAITING = "waiting"
    SERVING = "serving"
    DONE = "done"
    ABSENT = "absent"


ACTIVE_STATUSES = frozenset({EntryStatus.WAITING.value, EntryStatus.SERVING.value})
TERMINAL_STATUSES = frozenset({EntryStatus.DONE.value, EntryStatus.ABSENT.value})


class QueueEntry(Base):
    """
    A customer's entry in the day's queue.

    Entries are never deleted: done and absent entries stay as history
    and are filtered out of the live queue.
    """

    __tablename__ = "queue_entries"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    name: Mapped[str] = mapped_column(String(24), nullable=False)
    name_key: Mapped[str] = mapped_column(String(24), nullable=False, index=True)  # Duplicate detection only

    service_type: Mapped[str | None] = mapped_column(String(20))
    channel: Mapped[str] = mapped_column(String(10), nullable=False)

    # Online entries only
    device_id: Mapped[str | None] = mapped_column(String(64), index=True)
    expo_push_token: Mapped[str | None] = mapped_column(String(255))
    web_push_token: Mapped[str | None] = mapped_column(String(255))

    status: Mapped[str] = mapped_column(
        String(10),
        default=EntryStatus.WAITING.value,
        nullable=False,
    )

    # Ordering (milliseconds since epoch)
    order_key: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    inserted_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    booking_for: Mapped[int | None] = mapped_column(Integer)  # Hour of day, informational

    # Set on completion
    completed_at: Mapped[int | None] = mapped_column(BigInteger)
    amount_paid: Mapped[float | None] = mapped_column(Float)

    def __repr__(self) -> str:
        return f"<QueueEntry {self.name} ({self.status})>"

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

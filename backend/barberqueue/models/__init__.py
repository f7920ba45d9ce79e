# Database models
from barberqueue.models.queue_entry import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Channel,
    EntryStatus,
    QueueEntry,
    ServiceType,
)
from barberqueue.models.revenue_log import RevenueLog

__all__ = [
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "Channel",
    "EntryStatus",
    "QueueEntry",
    "ServiceType",
    "RevenueLog",
]

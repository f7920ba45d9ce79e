"""
Pydantic schemas for queue entries and revenue logs.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from barberqueue.models import ACTIVE_STATUSES, Channel, EntryStatus, ServiceType
from barberqueue.services.name_validator import normalize_name


class Entry(BaseModel):
    """A queue entry as seen by the engine and its callers."""
    id: str
    name: str
    name_key: str
    service_type: Optional[ServiceType] = None
    channel: Channel
    device_id: Optional[str] = None
    expo_push_token: Optional[str] = None
    web_push_token: Optional[str] = None
    status: EntryStatus = EntryStatus.WAITING
    order_key: int  # Lower = earlier in line
    inserted_at: int
    booking_for: Optional[int] = None
    completed_at: Optional[int] = None
    amount_paid: Optional[float] = None

    @classmethod
    def from_record(cls, entry_id: str, record: dict[str, Any]) -> "Entry":
        record = dict(record)
        # The cached key may be missing on records written by other clients
        if not record.get("name_key"):
            record["name_key"] = normalize_name(record.get("name") or "")
        return cls(id=entry_id, **record)

    @property
    def is_active(self) -> bool:
        return self.status.value in ACTIVE_STATUSES


class RevenueLogEntry(BaseModel):
    """One paid visit."""
    id: str
    amount: float
    service_type: Optional[ServiceType] = None
    customer_name: Optional[str] = None
    timestamp: int  # Completion time, epoch milliseconds

    @classmethod
    def from_record(cls, log_id: str, record: dict[str, Any]) -> "RevenueLogEntry":
        return cls(id=log_id, **record)


class PushTokens(BaseModel):
    """Push delivery tokens registered by an online customer's device."""
    expo_push_token: Optional[str] = Field(None, max_length=255)
    web_push_token: Optional[str] = Field(None, max_length=255)

"""
Timezone utilities for converting between epoch milliseconds and shop-local times.

Queue and revenue timestamps are stored as UTC milliseconds since the epoch.
Calendar buckets (day, week, month) are computed in the shop's local timezone.
"""

from datetime import datetime, timedelta
from typing import Optional

import pytz

from barberqueue.config import get_settings

UTC_TZ = pytz.UTC


def shop_tz(timezone: Optional[str] = None):
    """Get the pytz timezone for the shop (default from settings)."""
    return pytz.timezone(timezone or get_settings().shop_timezone)


def utc_now() -> datetime:
    """Get current time in UTC (timezone-aware)."""
    return datetime.now(UTC_TZ)


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return to_ms(utc_now())


def to_ms(dt: datetime) -> int:
    """
    Convert a datetime to epoch milliseconds.

    Naive datetimes are assumed to be UTC.
    """
    if dt.tzinfo is None:
        dt = UTC_TZ.localize(dt)
    return int(round(dt.timestamp() * 1000))


def from_ms(ms: int, tz=None) -> datetime:
    """
    Convert epoch milliseconds to an aware datetime.

    Args:
        ms: Milliseconds since the epoch
        tz: Target pytz timezone (default: shop timezone)
    """
    tz = tz or shop_tz()
    return datetime.fromtimestamp(ms / 1000, UTC_TZ).astimezone(tz)


def localize(dt: datetime, tz) -> datetime:
    """Attach tz to a naive datetime, or convert an aware one into tz."""
    if dt.tzinfo is None:
        return tz.localize(dt)
    return dt.astimezone(tz)


def local_midnight(year: int, month: int, day: int, tz) -> datetime:
    """
    Local midnight for a calendar date.

    Uses pytz localize so DST offsets are correct for that date.
    """
    return tz.localize(datetime(year, month, day))


def start_of_day(dt: datetime, tz) -> datetime:
    local = localize(dt, tz)
    return local_midnight(local.year, local.month, local.day, tz)


def start_of_week(dt: datetime, tz) -> datetime:
    """Most recent Sunday 00:00 local (today if today is Sunday)."""
    local = localize(dt, tz)
    days_since_sunday = (local.weekday() + 1) % 7  # Monday=0 ... Sunday=6
    sunday = local.date() - timedelta(days=days_since_sunday)
    return local_midnight(sunday.year, sunday.month, sunday.day, tz)


def start_of_month(dt: datetime, tz) -> datetime:
    local = localize(dt, tz)
    return local_midnight(local.year, local.month, 1, tz)

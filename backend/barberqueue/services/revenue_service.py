"""
Revenue service - turns the flat revenue log into dashboard statistics.

Period totals are cumulative from the start of the period: today's revenue
is also counted in the week and month totals. Weeks start on Sunday.

Month and day histories are sparse. Only months and days that have at
least one payment are listed; filling the gaps with zeros is left to
whoever draws the chart.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Optional, Union

from barberqueue.schemas.analytics import (
    DaySummary,
    MonthDays,
    MonthSummary,
    RevenueStats,
    ServiceSummary,
)
from barberqueue.schemas.queue import RevenueLogEntry
from barberqueue.utils.timezone import (
    from_ms,
    local_midnight,
    localize,
    shop_tz,
    start_of_day,
    start_of_month,
    start_of_week,
    to_ms,
    utc_now,
)

RECENT_DAYS = 14


class _Bucket:
    __slots__ = ("revenue", "customers")

    def __init__(self):
        self.revenue = 0.0
        self.customers = 0

    def add(self, amount: float) -> None:
        self.revenue += amount
        self.customers += 1


def compute_stats(
    logs: Iterable[RevenueLogEntry],
    now: Optional[Union[datetime, int]] = None,
    tz=None,
) -> RevenueStats:
    """
    Compute revenue statistics relative to now.

    Args:
        logs: The full revenue log
        now: Reference time (default: current time), as a datetime or
            epoch milliseconds; naive datetimes are taken as shop-local
        tz: pytz timezone for calendar boundaries (default: shop timezone)

    Returns:
        RevenueStats; an empty log gives all zeros and empty histories
    """
    tz = tz or shop_tz()
    if now is None:
        now = utc_now()
    elif isinstance(now, int):
        now = from_ms(now, tz)
    now_local = localize(now, tz)

    today_start = to_ms(start_of_day(now_local, tz))
    week_start = to_ms(start_of_week(now_local, tz))
    month_start = to_ms(start_of_month(now_local, tz))

    stats = RevenueStats()
    months: dict[int, _Bucket] = defaultdict(_Bucket)
    days: dict[int, _Bucket] = defaultdict(_Bucket)
    month_days: dict[int, dict[int, _Bucket]] = defaultdict(lambda: defaultdict(_Bucket))
    services: dict[str, _Bucket] = defaultdict(_Bucket)  # insertion order = first seen

    count = 0
    for log in logs:
        count += 1
        amount = log.amount
        stats.total_revenue += amount

        if log.timestamp >= today_start:
            stats.today += amount
            stats.total_customers_today += 1
        if log.timestamp >= week_start:
            stats.weekly += amount
        if log.timestamp >= month_start:
            stats.monthly += amount

        logged = from_ms(log.timestamp, tz)
        log_month = to_ms(local_midnight(logged.year, logged.month, 1, tz))
        log_day = to_ms(local_midnight(logged.year, logged.month, logged.day, tz))
        months[log_month].add(amount)
        days[log_day].add(amount)
        month_days[log_month][log_day].add(amount)

        if log.service_type:
            services[log.service_type.value].add(amount)

    stats.total_customers_all_time = count
    stats.average_ticket = stats.total_revenue / count if count else 0
    stats.daily_average_this_month = stats.monthly / now_local.day

    max_count = 0
    for service, bucket in services.items():
        if bucket.customers > max_count:
            max_count = bucket.customers
            stats.popular_service = service

    stats.monthly_history = [
        MonthSummary(
            month_start=key,
            revenue=bucket.revenue,
            customers=bucket.customers,
            average_ticket=bucket.revenue / bucket.customers if bucket.customers else 0,
        )
        for key, bucket in sorted(months.items())
    ]

    stats.service_breakdown = sorted(
        (
            ServiceSummary(service=service, count=bucket.customers, revenue=bucket.revenue)
            for service, bucket in services.items()
        ),
        key=lambda summary: summary.count,
        reverse=True,
    )

    stats.daily_revenue_by_month = [
        MonthDays(
            month_start=key,
            days=[
                DaySummary(day_start=day, revenue=bucket.revenue, customers=bucket.customers)
                for day, bucket in sorted(month_days[key].items())
            ],
        )
        for key in sorted(month_days)
    ]

    stats.recent_days = []
    today = now_local.date()
    for offset in range(RECENT_DAYS - 1, -1, -1):
        date = today - timedelta(days=offset)
        day_start = to_ms(local_midnight(date.year, date.month, date.day, tz))
        bucket = days.get(day_start)
        stats.recent_days.append(DaySummary(
            day_start=day_start,
            revenue=bucket.revenue if bucket else 0,
            customers=bucket.customers if bucket else 0,
        ))

    return stats

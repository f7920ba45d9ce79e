"""
Pydantic schemas for revenue analytics.

All *_start fields are epoch milliseconds of a shop-local midnight.
"""

from pydantic import BaseModel


class MonthSummary(BaseModel):
    month_start: int
    revenue: float
    customers: int
    average_ticket: float


class DaySummary(BaseModel):
    day_start: int
    revenue: float
    customers: int


class MonthDays(BaseModel):
    """Days of one month that had at least one payment."""
    month_start: int
    days: list[DaySummary]


class ServiceSummary(BaseModel):
    service: str
    count: int
    revenue: float


class RevenueStats(BaseModel):
    """Revenue figures for the owner dashboard."""
    today: float = 0
    weekly: float = 0
    monthly: float = 0
    total_revenue: float = 0
    total_customers_today: int = 0
    total_customers_all_time: int = 0
    average_ticket: float = 0
    daily_average_this_month: float = 0
    popular_service: str = "None"
    monthly_history: list[MonthSummary] = []
    service_breakdown: list[ServiceSummary] = []
    recent_days: list[DaySummary] = []
    daily_revenue_by_month: list[MonthDays] = []

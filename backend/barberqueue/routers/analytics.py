"""
Analytics API endpoints.
Revenue figures for the shop owner's dashboard.
"""

from fastapi import APIRouter, Depends

from barberqueue.dependencies import get_engine
from barberqueue.schemas.analytics import RevenueStats
from barberqueue.services.queue_engine import QueueEngine
from barberqueue.services.revenue_service import compute_stats

router = APIRouter()


@router.get("/stats", response_model=RevenueStats)
async def get_revenue_stats(
    engine: QueueEngine = Depends(get_engine),
):
    """
    Revenue totals and histories computed from the full revenue log.

    Month and day histories only list periods with at least one payment.
    """
    logs = await engine.list_revenue()
    return compute_stats(logs)

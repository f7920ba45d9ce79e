"""
Admin API endpoints.

Controls the admin notification session for the shop's staff device.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from barberqueue.dependencies import get_admin_session
from barberqueue.services.admin_session import AdminSession

router = APIRouter()


class AdminSessionState(BaseModel):
    enabled: bool


@router.get("/session", response_model=AdminSessionState)
async def get_session_state(
    session: AdminSession = Depends(get_admin_session),
):
    return AdminSessionState(enabled=session.enabled)


@router.put("/session", response_model=AdminSessionState)
async def set_session_state(
    state: AdminSessionState,
    session: AdminSession = Depends(get_admin_session),
):
    """Turn staff alerts (new customer, now serving) on or off."""
    session.set_enabled(state.enabled)
    return AdminSessionState(enabled=session.enabled)

"""
Device endpoints.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from barberqueue.utils.device import generate_device_id

router = APIRouter()


class DeviceResponse(BaseModel):
    device_id: str


@router.post("", response_model=DeviceResponse, status_code=201)
async def register_device():
    """Issue a device id for a customer phone to keep and send on join."""
    return DeviceResponse(device_id=generate_device_id())

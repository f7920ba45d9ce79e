"""
Queue API endpoints.
Customers join from their phones, staff add walk-ins and move people through the line.
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from barberqueue.dependencies import get_engine
from barberqueue.models import Channel, EntryStatus, ServiceType
from barberqueue.schemas.queue import Entry, PushTokens
from barberqueue.services.queue_engine import QueueEngine, position_of

router = APIRouter()


# =============================================================================
# Request/Response Models
# =============================================================================

class JoinRequest(BaseModel):
    """Join request from a customer device or the admin screen."""
    name: str = Field(..., max_length=200)
    service_type: Optional[ServiceType] = None
    channel: Channel = Channel.ONLINE
    device_id: Optional[str] = Field(None, max_length=64)
    booking_hour: Optional[int] = Field(None, ge=0, le=23)
    push_tokens: Optional[PushTokens] = None


class JoinResponse(BaseModel):
    id: str


class CompleteRequest(BaseModel):
    amount: float


class CompleteResponse(BaseModel):
    revenue_log_id: str


class MoveDownRequest(BaseModel):
    """The caller's current queue order, as entry ids."""
    snapshot_ids: list[str]


class EntryResponse(BaseModel):
    """Queue entry as shown to clients."""
    id: str
    name: str
    service_type: Optional[ServiceType] = None
    channel: Channel
    device_id: Optional[str] = None
    status: EntryStatus
    order_key: int
    booking_for: Optional[int] = None
    position: Optional[int] = None  # Waiting customers ahead; None unless waiting


def to_responses(entries: list[Entry]) -> list[EntryResponse]:
    return [
        EntryResponse(
            id=entry.id,
            name=entry.name,
            service_type=entry.service_type,
            channel=entry.channel,
            device_id=entry.device_id,
            status=entry.status,
            order_key=entry.order_key,
            booking_for=entry.booking_for,
            position=position_of(entry.id, entries),
        )
        for entry in entries
    ]


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/join", response_model=JoinResponse, status_code=201)
async def join_queue(
    request: JoinRequest,
    engine: QueueEngine = Depends(get_engine),
):
    """
    Add a customer to the end of the line.

    Online customers should send their device id so the same phone
    can't take two places.
    """
    entry_id = await engine.join(
        request.name,
        service_type=request.service_type,
        channel=request.channel,
        device_id=request.device_id,
        booking_hour=request.booking_hour,
        push_tokens=request.push_tokens,
    )
    return JoinResponse(id=entry_id)


@router.get("/active", response_model=list[EntryResponse])
async def list_active(
    engine: QueueEngine = Depends(get_engine),
):
    """Live queue in line order."""
    return to_responses(await engine.list_active())


@router.post("/{entry_id}/serve", status_code=204)
async def serve_entry(
    entry_id: str,
    engine: QueueEngine = Depends(get_engine),
):
    await engine.serve(entry_id)


@router.post("/{entry_id}/complete", response_model=CompleteResponse)
async def complete_entry(
    entry_id: str,
    request: CompleteRequest,
    engine: QueueEngine = Depends(get_engine),
):
    """Finish a visit and record what the customer paid."""
    log_id = await engine.complete(entry_id, request.amount)
    return CompleteResponse(revenue_log_id=log_id)


@router.post("/{entry_id}/remove", status_code=204)
async def remove_entry(
    entry_id: str,
    engine: QueueEngine = Depends(get_engine),
):
    """Mark a customer absent (admin) or leave the line (customer)."""
    await engine.remove(entry_id)


@router.post("/{entry_id}/move-down", status_code=204)
async def move_entry_down(
    entry_id: str,
    request: MoveDownRequest,
    engine: QueueEngine = Depends(get_engine),
):
    """
    Swap a customer with the one after them.

    The order comes from the caller's view of the queue; ids that are no
    longer active are skipped.
    """
    by_id = {entry.id: entry for entry in await engine.list_active()}
    snapshot = [by_id[snapshot_id] for snapshot_id in request.snapshot_ids if snapshot_id in by_id]
    await engine.move_down(entry_id, snapshot)


@router.websocket("/ws")
async def queue_stream(websocket: WebSocket):
    """
    Push the live queue to the client.

    Sends the current queue on connect, then the full queue after every change.
    """
    engine: QueueEngine = websocket.app.state.engine
    await websocket.accept()

    updates: asyncio.Queue[list[Entry]] = asyncio.Queue()
    unsubscribe = await engine.subscribe_active(updates.put_nowait)
    disconnected = asyncio.create_task(_wait_for_disconnect(websocket))

    try:
        while True:
            next_update = asyncio.create_task(updates.get())
            done, _ = await asyncio.wait(
                {next_update, disconnected},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if disconnected in done:
                next_update.cancel()
                break
            entries = next_update.result()
            await websocket.send_json(
                [response.model_dump(mode="json") for response in to_responses(entries)]
            )
    finally:
        unsubscribe()
        disconnected.cancel()


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    """Consume client frames until the socket closes."""
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return

"""
Realtime WebSocket endpoints

Clients authenticate with ?token=<access token> (browsers cannot set an
Authorization header on a WebSocket). Each connection subscribes to one event
bus channel and receives its messages as JSON until it disconnects.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session
from starlette.websockets import WebSocketState

from ..auth import get_user_from_token
from ..database import get_db
from ..domain.bookings.service import BookingService
from ..events import Subscription, channels, event_bus
from ..models import User, UserRole
from ..models_booking import Booking, BookingStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["Realtime"])

# Close codes in the 4000-4999 application range
CLOSE_UNAUTHORIZED = 4401
CLOSE_FORBIDDEN = 4403
CLOSE_NOT_FOUND = 4404

CLOSE_INTERNAL_ERROR = 1011

BOOKING_STREAMS = {
    "status": channels.booking_status,
    "chat": channels.booking_chat,
    "items": channels.booking_items,
    "attachments": channels.booking_attachments,
}

ACTIVE_STATUSES = [BookingStatus.CONFIRMED.value, BookingStatus.IN_PROGRESS.value]


def _authenticate(websocket: WebSocket, db: Session) -> User:
    token = websocket.query_params.get("token")
    if not token:
        raise HTTPException(status_code=401, detail="Missing token")
    return get_user_from_token(token, db)


async def _stream(websocket: WebSocket, subscription: Subscription) -> None:
    """Forward channel messages until the client goes away"""
    await websocket.accept()

    async def forward():
        while True:
            message = await subscription.get()
            await websocket.send_json(message)

    async def receive():
        try:
            while True:
                text = await websocket.receive_text()
                if text == "ping":
                    await websocket.send_json({"type": "pong"})
        except WebSocketDisconnect:
            pass

    sender = asyncio.create_task(forward())
    receiver = asyncio.create_task(receive())
    try:
        # Whichever side stops first ends the connection
        done, pending = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            error = task.exception()
            if error is not None:
                logger.warning(f"⚠️ WebSocket on {subscription.channel} failed: {error}")
        if sender in done and websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close(code=CLOSE_INTERNAL_ERROR)
    finally:
        sender.cancel()
        receiver.cancel()
        subscription.close()
        logger.debug(f"📴 WebSocket closed for {subscription.channel}")


async def _reject(websocket: WebSocket, error: HTTPException) -> None:
    code = {401: CLOSE_UNAUTHORIZED, 403: CLOSE_FORBIDDEN}.get(error.status_code, CLOSE_NOT_FOUND)
    logger.info(f"ℹ️ WebSocket rejected ({code}): {error.detail}")
    await websocket.close(code=code)


@router.websocket("/offers")
async def offers_stream(websocket: WebSocket, db: Session = Depends(get_db)):
    """New and withdrawn offers for the connected provider"""
    try:
        user = _authenticate(websocket, db)
        if user.role != UserRole.PROVIDER.value or not user.is_approved:
            raise HTTPException(status_code=403, detail="Approved providers only")
    except HTTPException as e:
        await _reject(websocket, e)
        return
    finally:
        db.close()

    await _stream(websocket, event_bus.subscribe(channels.booking_new(user.id)))


@router.websocket("/bookings/{booking_id}/{stream}")
async def booking_stream(
    websocket: WebSocket, booking_id: int, stream: str, db: Session = Depends(get_db)
):
    """Status, chat, item or attachment events for one booking"""
    try:
        channel_for = BOOKING_STREAMS.get(stream)
        if channel_for is None:
            raise HTTPException(status_code=404, detail=f"Unknown stream: {stream}")
        user = _authenticate(websocket, db)
        BookingService(db).get_booking(booking_id, user)
    except HTTPException as e:
        await _reject(websocket, e)
        return
    finally:
        db.close()

    await _stream(websocket, event_bus.subscribe(channel_for(booking_id)))


@router.websocket("/providers/{provider_id}/location")
async def provider_location_stream(
    websocket: WebSocket, provider_id: int, db: Session = Depends(get_db)
):
    """
    Live position of a provider.

    Open to the provider, admins, and customers with an active booking
    assigned to that provider.
    """
    try:
        user = _authenticate(websocket, db)
        allowed = user.id == provider_id or user.role == UserRole.ADMIN.value
        if not allowed:
            allowed = (
                db.query(Booking.id)
                .filter(
                    Booking.customer_id == user.id,
                    Booking.provider_id == provider_id,
                    Booking.status.in_(ACTIVE_STATUSES),
                )
                .first()
                is not None
            )
        if not allowed:
            raise HTTPException(status_code=403, detail="Not allowed to track this provider")
    except HTTPException as e:
        await _reject(websocket, e)
        return
    finally:
        db.close()

    await _stream(websocket, event_bus.subscribe(channels.provider_location(provider_id)))

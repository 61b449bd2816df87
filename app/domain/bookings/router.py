"""Booking router - FastAPI endpoints for the booking lifecycle"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_approved_provider, require_customer
from ...database import get_db
from ...models import User
from ...rate_limiter import create_rate_limiter
from .schemas import (
    AttachmentResponse,
    AttachmentUploadRequest,
    AttachmentUploadResponse,
    BookingCreate,
    BookingDetailResponse,
    BookingItemCreate,
    BookingItemResponse,
    MessageCreate,
    MessageResponse,
    RatingCreate,
)
from .service import (
    BookingService,
    attachment_to_response,
    booking_to_detail,
    item_to_response,
    message_to_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])

# Each booking fans out to every eligible provider, keep creation bounded
rate_limit_booking_create = create_rate_limiter(
    limit=10, window_seconds=60, key_prefix="booking_create"
)
rate_limit_chat = create_rate_limiter(limit=60, window_seconds=60, key_prefix="booking_chat")


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


# ============================================================================
# LIFECYCLE
# ============================================================================


@router.post("", response_model=BookingDetailResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    current_user: User = Depends(require_customer),
    service: BookingService = Depends(get_booking_service),
    _: None = Depends(rate_limit_booking_create),
):
    """Request a service at a location; eligible providers receive an offer"""
    return booking_to_detail(service.create_booking(data, current_user))


@router.get("/{booking_id}", response_model=BookingDetailResponse)
async def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return booking_to_detail(service.get_booking(booking_id, current_user))


@router.post("/{booking_id}/start", response_model=BookingDetailResponse)
async def start_job(
    booking_id: int,
    current_user: User = Depends(require_approved_provider),
    service: BookingService = Depends(get_booking_service),
):
    """Assigned provider starts work (CONFIRMED → IN_PROGRESS)"""
    return booking_to_detail(service.start_job(booking_id, current_user))


@router.post("/{booking_id}/complete", response_model=BookingDetailResponse)
async def complete_job(
    booking_id: int,
    current_user: User = Depends(require_approved_provider),
    service: BookingService = Depends(get_booking_service),
):
    """Assigned provider finishes work (IN_PROGRESS → COMPLETED)"""
    return booking_to_detail(service.complete_job(booking_id, current_user))


@router.post("/{booking_id}/cancel", response_model=BookingDetailResponse)
async def cancel_booking(
    booking_id: int,
    current_user: User = Depends(require_customer),
    service: BookingService = Depends(get_booking_service),
):
    return booking_to_detail(service.cancel_booking(booking_id, current_user))


@router.post("/{booking_id}/rating", response_model=BookingDetailResponse, status_code=201)
async def rate_booking(
    booking_id: int,
    data: RatingCreate,
    current_user: User = Depends(require_customer),
    service: BookingService = Depends(get_booking_service),
):
    return booking_to_detail(service.rate_booking(booking_id, data, current_user))


# ============================================================================
# CHAT
# ============================================================================


@router.get("/{booking_id}/messages", response_model=list[MessageResponse])
async def get_messages(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return [message_to_response(m) for m in service.get_messages(booking_id, current_user)]


@router.post("/{booking_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    booking_id: int,
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
    _: None = Depends(rate_limit_chat),
):
    return message_to_response(service.send_message(booking_id, data, current_user))


# ============================================================================
# PARTS AND LABOUR
# ============================================================================


@router.get("/{booking_id}/items", response_model=list[BookingItemResponse])
async def get_items(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return [item_to_response(i) for i in service.get_items(booking_id, current_user)]


@router.post("/{booking_id}/items", response_model=BookingItemResponse, status_code=201)
async def add_item(
    booking_id: int,
    data: BookingItemCreate,
    current_user: User = Depends(require_approved_provider),
    service: BookingService = Depends(get_booking_service),
):
    """Add a part or extra labour line; the booking price is recomputed"""
    return item_to_response(service.add_item(booking_id, data, current_user))


@router.delete("/{booking_id}/items/{item_id}")
async def delete_item(
    booking_id: int,
    item_id: int,
    current_user: User = Depends(require_approved_provider),
    service: BookingService = Depends(get_booking_service),
):
    return service.delete_item(booking_id, item_id, current_user)


# ============================================================================
# ATTACHMENTS
# ============================================================================


@router.get("/{booking_id}/attachments", response_model=list[AttachmentResponse])
async def get_attachments(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return [attachment_to_response(a) for a in service.get_attachments(booking_id, current_user)]


@router.post("/{booking_id}/attachments", response_model=AttachmentUploadResponse, status_code=201)
async def create_attachment_upload(
    booking_id: int,
    data: AttachmentUploadRequest,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """
    Get a presigned URL for uploading a photo or document.

    The client PUTs the file straight to S3 with the same Content-Type.
    """
    upload_url, attachment = service.create_attachment_upload(booking_id, data, current_user)
    return AttachmentUploadResponse(
        uploadUrl=upload_url, attachment=attachment_to_response(attachment)
    )

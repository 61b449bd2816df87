"""Provider router - FastAPI endpoints for mechanics: nearby, location, jobs and offers"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_approved_provider, require_provider
from ...database import get_db
from ...models import User
from ...rate_limiter import create_rate_limiter
from ..bookings.schemas import BookingDetailResponse
from ..bookings.service import BookingService, OfferService, booking_to_detail
from .schemas import LocationUpdate, NearbyProvider, OfferDecline, OfferResponse
from .service import ProvidersService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers", tags=["Providers"])

# Apps push location every few seconds while a job is active
rate_limit_location = create_rate_limiter(limit=120, window_seconds=60, key_prefix="provider_location")


def get_providers_service(db: Session = Depends(get_db)) -> ProvidersService:
    """Dependency injection for ProvidersService"""
    return ProvidersService(db)


def get_offer_service(db: Session = Depends(get_db)) -> OfferService:
    """Dependency injection for OfferService"""
    return OfferService(db)


@router.get("/nearby", response_model=list[NearbyProvider])
async def get_nearby(
    service_id: int = Query(..., alias="serviceId"),
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    _: User = Depends(get_current_user),
    service: ProvidersService = Depends(get_providers_service),
):
    """Providers offering a service, sorted by distance"""
    return service.get_nearby(service_id, lat, lng)


@router.post("/location")
async def update_location(
    data: LocationUpdate,
    current_user: User = Depends(require_provider),
    service: ProvidersService = Depends(get_providers_service),
    _: None = Depends(rate_limit_location),
):
    """Store the provider's position and push it to live map subscribers"""
    return service.update_location(current_user, data)


@router.get("/jobs", response_model=list[BookingDetailResponse])
async def get_jobs(
    current_user: User = Depends(require_provider),
    db: Session = Depends(get_db),
):
    """Bookings assigned to the current provider, newest first"""
    return [booking_to_detail(b) for b in BookingService(db).get_provider_jobs(current_user)]


# ============================================================================
# OFFERS
# ============================================================================


@router.get("/offers", response_model=list[OfferResponse])
async def get_offers(
    current_user: User = Depends(require_approved_provider),
    service: OfferService = Depends(get_offer_service),
):
    """Open offers still inside their TTL, newest first"""
    return service.list_offers(current_user)


@router.post("/offers/{booking_id}/accept", response_model=BookingDetailResponse)
async def accept_offer(
    booking_id: int,
    current_user: User = Depends(require_approved_provider),
    service: OfferService = Depends(get_offer_service),
):
    """First provider to accept gets the job; later acceptors receive 409"""
    return booking_to_detail(service.accept_offer(booking_id, current_user))


@router.post("/offers/{booking_id}/decline")
async def decline_offer(
    booking_id: int,
    data: Optional[OfferDecline] = None,
    current_user: User = Depends(require_approved_provider),
    service: OfferService = Depends(get_offer_service),
):
    return service.decline_offer(booking_id, current_user, data.reason if data else None)

"""Customer router - FastAPI endpoints for vehicles, places, bookings and regions"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_customer
from ...database import get_db
from ...models import SavedPlace, User
from ..bookings.schemas import BookingDetailResponse
from ..bookings.service import BookingService, booking_to_detail, vehicle_to_response
from .schemas import (
    BookingCounts,
    PlaceCreate,
    PlaceResponse,
    PlaceUpdate,
    RegionSummary,
    VehicleCreate,
    VehicleResponse,
    VehicleUpdate,
)
from .service import CustomerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["Customers"])


def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    """Dependency injection for CustomerService"""
    return CustomerService(db)


def place_to_response(place: SavedPlace) -> PlaceResponse:
    return PlaceResponse(
        id=place.id,
        label=place.label,
        address=place.address or "",
        latitude=place.latitude,
        longitude=place.longitude,
        createdAt=place.created_at,
    )


@router.get("/regions", response_model=list[RegionSummary])
async def get_regions(
    _: User = Depends(get_current_user),
    service: CustomerService = Depends(get_customer_service),
):
    """Named regions available for filtering"""
    return [RegionSummary(id=r.id, name=r.name) for r in service.get_regions()]


# ============================================================================
# VEHICLES
# ============================================================================


@router.get("/vehicles", response_model=list[VehicleResponse])
async def get_vehicles(
    current_user: User = Depends(require_customer),
    service: CustomerService = Depends(get_customer_service),
):
    return [vehicle_to_response(v) for v in service.get_vehicles(current_user)]


@router.post("/vehicles", response_model=VehicleResponse, status_code=201)
async def add_vehicle(
    data: VehicleCreate,
    current_user: User = Depends(require_customer),
    service: CustomerService = Depends(get_customer_service),
):
    return vehicle_to_response(service.add_vehicle(data, current_user))


@router.patch("/vehicles/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_id: int,
    data: VehicleUpdate,
    current_user: User = Depends(require_customer),
    service: CustomerService = Depends(get_customer_service),
):
    return vehicle_to_response(service.update_vehicle(vehicle_id, data, current_user))


@router.delete("/vehicles/{vehicle_id}")
async def delete_vehicle(
    vehicle_id: int,
    current_user: User = Depends(require_customer),
    service: CustomerService = Depends(get_customer_service),
):
    return service.delete_vehicle(vehicle_id, current_user)


# ============================================================================
# SAVED PLACES
# ============================================================================


@router.get("/places", response_model=list[PlaceResponse])
async def get_places(
    current_user: User = Depends(require_customer),
    service: CustomerService = Depends(get_customer_service),
):
    return [place_to_response(p) for p in service.get_places(current_user)]


@router.post("/places", response_model=PlaceResponse, status_code=201)
async def add_place(
    data: PlaceCreate,
    current_user: User = Depends(require_customer),
    service: CustomerService = Depends(get_customer_service),
):
    return place_to_response(service.add_place(data, current_user))


@router.patch("/places/{place_id}", response_model=PlaceResponse)
async def update_place(
    place_id: int,
    data: PlaceUpdate,
    current_user: User = Depends(require_customer),
    service: CustomerService = Depends(get_customer_service),
):
    return place_to_response(service.update_place(place_id, data, current_user))


@router.delete("/places/{place_id}")
async def delete_place(
    place_id: int,
    current_user: User = Depends(require_customer),
    service: CustomerService = Depends(get_customer_service),
):
    return service.delete_place(place_id, current_user)


# ============================================================================
# BOOKINGS
# ============================================================================


@router.get("/bookings", response_model=list[BookingDetailResponse])
async def get_my_bookings(
    current_user: User = Depends(require_customer),
    db: Session = Depends(get_db),
):
    """Customer's bookings with service, provider, vehicle and rating, newest first"""
    bookings = BookingService(db).get_customer_bookings(current_user)
    return [booking_to_detail(b) for b in bookings]


@router.get("/bookings/counts", response_model=BookingCounts)
async def get_booking_counts(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    region_id: Optional[int] = Query(None, alias="regionId"),
    current_user: User = Depends(require_customer),
    service: CustomerService = Depends(get_customer_service),
):
    """Per-status booking counts in [from, to), optionally inside a region"""
    return service.get_booking_counts(current_user, date_from, date_to, region_id)

"""Customer service - Business logic for a customer's garage, places and history"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import BOOKING_COUNTS_DEFAULT_DAYS
from ...models import Region, SavedPlace, User, Vehicle
from ...shared.geo import point_in_polygon
from ...shared.timeutils import to_naive_utc, utcnow
from ..bookings.repository import BookingRepository
from .repository import CustomerRepository
from .schemas import BookingCounts, PlaceCreate, PlaceUpdate, VehicleCreate, VehicleUpdate

logger = logging.getLogger(__name__)


class CustomerService:
    """Service layer for customer-owned resources"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CustomerRepository()

    def _owned(self, record, user: User, label: str):
        if not record:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        if record.user_id != user.id:
            logger.warning(f"⚠️ User {user.id} tried to modify {label.lower()} {record.id}")
            raise HTTPException(status_code=403, detail="Not allowed")
        return record

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    def get_vehicles(self, user: User) -> list[Vehicle]:
        return self.repo.get_vehicles(self.db, user.id)

    def add_vehicle(self, data: VehicleCreate, user: User) -> Vehicle:
        vehicle = self.repo.create_vehicle(
            self.db,
            user.id,
            make=data.make.strip(),
            model=data.model.strip(),
            year=data.year,
            license_plate=data.licensePlate,
        )
        logger.info(f"🚗 Customer {user.id} added vehicle {vehicle.id}")
        return vehicle

    def update_vehicle(self, vehicle_id: int, data: VehicleUpdate, user: User) -> Vehicle:
        vehicle = self._owned(self.repo.get_vehicle(self.db, vehicle_id), user, "Vehicle")
        return self.repo.update(
            self.db,
            vehicle,
            make=data.make.strip() if data.make else None,
            model=data.model.strip() if data.model else None,
            year=data.year,
            license_plate=data.licensePlate,
        )

    def delete_vehicle(self, vehicle_id: int, user: User) -> dict:
        vehicle = self._owned(self.repo.get_vehicle(self.db, vehicle_id), user, "Vehicle")
        if self.repo.vehicle_in_use(self.db, vehicle.id):
            raise HTTPException(status_code=409, detail="Vehicle is used by existing bookings")
        self.repo.delete(self.db, vehicle)
        return {"ok": True}

    # ------------------------------------------------------------------
    # Saved places
    # ------------------------------------------------------------------

    def get_places(self, user: User) -> list[SavedPlace]:
        return self.repo.get_places(self.db, user.id)

    def add_place(self, data: PlaceCreate, user: User) -> SavedPlace:
        return self.repo.create_place(
            self.db,
            user.id,
            label=data.label.strip(),
            address=(data.address or "").strip(),
            latitude=data.lat,
            longitude=data.lng,
        )

    def update_place(self, place_id: int, data: PlaceUpdate, user: User) -> SavedPlace:
        place = self._owned(self.repo.get_place(self.db, place_id), user, "Place")
        return self.repo.update(
            self.db,
            place,
            label=data.label.strip() if data.label else None,
            address=data.address.strip() if data.address is not None else None,
            latitude=data.lat,
            longitude=data.lng,
        )

    def delete_place(self, place_id: int, user: User) -> dict:
        place = self._owned(self.repo.get_place(self.db, place_id), user, "Place")
        self.repo.delete(self.db, place)
        return {"ok": True}

    # ------------------------------------------------------------------
    # Regions and analytics
    # ------------------------------------------------------------------

    def get_regions(self) -> list[Region]:
        return self.repo.get_regions(self.db)

    def get_booking_counts(
        self,
        user: User,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        region_id: Optional[int] = None,
    ) -> BookingCounts:
        """
        Count the customer's bookings per status.

        The window is [date_from, date_to) and defaults to the last
        BOOKING_COUNTS_DEFAULT_DAYS days. A booking is dated by scheduled_at
        when set, otherwise by its creation date. With a region only bookings
        located inside the region polygon are counted; an unknown region
        counts nothing.
        """
        date_to = to_naive_utc(date_to) or utcnow()
        date_from = to_naive_utc(date_from) or date_to - timedelta(days=BOOKING_COUNTS_DEFAULT_DAYS)
        if date_from >= date_to:
            raise HTTPException(status_code=400, detail="'from' must be before 'to'")

        polygon = None
        if region_id is not None:
            region = self.repo.get_region(self.db, region_id)
            if not region:
                return BookingCounts()
            polygon = region.polygon

        counts = BookingCounts()
        bookings = BookingRepository.get_customer_bookings_between(
            self.db, user.id, date_from, date_to
        )
        for booking in bookings:
            if polygon is not None and not point_in_polygon(
                booking.latitude, booking.longitude, polygon
            ):
                continue
            if hasattr(counts, booking.status):
                setattr(counts, booking.status, getattr(counts, booking.status) + 1)
        return counts

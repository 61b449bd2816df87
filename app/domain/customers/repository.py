"""Customer repository - Database operations for vehicles, places and regions"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Region, SavedPlace, Vehicle
from ...models_booking import Booking


class CustomerRepository:
    """Repository for customer-owned records"""

    @staticmethod
    def get_vehicles(db: Session, user_id: int) -> list[Vehicle]:
        return (
            db.query(Vehicle)
            .filter(Vehicle.user_id == user_id)
            .order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
            .all()
        )

    @staticmethod
    def get_vehicle(db: Session, vehicle_id: int) -> Optional[Vehicle]:
        return db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()

    @staticmethod
    def create_vehicle(db: Session, user_id: int, **data) -> Vehicle:
        vehicle = Vehicle(user_id=user_id, **data)
        db.add(vehicle)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    @staticmethod
    def vehicle_in_use(db: Session, vehicle_id: int) -> bool:
        return db.query(Booking.id).filter(Booking.vehicle_id == vehicle_id).first() is not None

    @staticmethod
    def get_places(db: Session, user_id: int) -> list[SavedPlace]:
        return (
            db.query(SavedPlace)
            .filter(SavedPlace.user_id == user_id)
            .order_by(SavedPlace.created_at.desc(), SavedPlace.id.desc())
            .all()
        )

    @staticmethod
    def get_place(db: Session, place_id: int) -> Optional[SavedPlace]:
        return db.query(SavedPlace).filter(SavedPlace.id == place_id).first()

    @staticmethod
    def create_place(db: Session, user_id: int, **data) -> SavedPlace:
        place = SavedPlace(user_id=user_id, **data)
        db.add(place)
        db.commit()
        db.refresh(place)
        return place

    @staticmethod
    def update(db: Session, record, **updates):
        """Apply non-None updates to a vehicle or place"""
        for key, value in updates.items():
            if value is not None and hasattr(record, key):
                setattr(record, key, value)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def delete(db: Session, record) -> None:
        db.delete(record)
        db.commit()

    @staticmethod
    def get_regions(db: Session) -> list[Region]:
        return db.query(Region).order_by(Region.name.asc()).all()

    @staticmethod
    def get_region(db: Session, region_id: int) -> Optional[Region]:
        return db.query(Region).filter(Region.id == region_id).first()

"""Admin repository - Database operations for platform administration"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Region, User, UserRole
from ...models_booking import Booking


class AdminRepository:
    """Repository for admin database operations"""

    @staticmethod
    def count_users(db: Session, role: Optional[str] = None) -> int:
        query = db.query(User)
        if role:
            query = query.filter(User.role == role)
        return query.count()

    @staticmethod
    def count_bookings(db: Session) -> int:
        return db.query(Booking).count()

    @staticmethod
    def get_unapproved_providers(db: Session) -> list[User]:
        return (
            db.query(User)
            .options(joinedload(User.profile))
            .filter(User.role == UserRole.PROVIDER.value, User.is_approved.is_(False))
            .order_by(User.created_at.asc(), User.id.asc())
            .all()
        )

    @staticmethod
    def count_unapproved_providers(db: Session) -> int:
        return (
            db.query(User)
            .filter(User.role == UserRole.PROVIDER.value, User.is_approved.is_(False))
            .count()
        )

    @staticmethod
    def get_provider(db: Session, user_id: int) -> Optional[User]:
        return (
            db.query(User)
            .options(joinedload(User.profile))
            .filter(User.id == user_id, User.role == UserRole.PROVIDER.value)
            .first()
        )

    @staticmethod
    def approve(db: Session, user: User) -> User:
        user.is_approved = True
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def get_regions(db: Session) -> list[Region]:
        return db.query(Region).order_by(Region.name.asc()).all()

    @staticmethod
    def get_region(db: Session, region_id: int) -> Optional[Region]:
        return db.query(Region).filter(Region.id == region_id).first()

    @staticmethod
    def get_region_by_name(db: Session, name: str) -> Optional[Region]:
        return db.query(Region).filter(Region.name == name).first()

    @staticmethod
    def create_region(db: Session, name: str, polygon: dict) -> Region:
        region = Region(name=name, polygon=polygon)
        db.add(region)
        db.commit()
        db.refresh(region)
        return region

    @staticmethod
    def delete_region(db: Session, region: Region) -> None:
        db.delete(region)
        db.commit()

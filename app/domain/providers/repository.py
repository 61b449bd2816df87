"""Provider repository - Database operations for provider profiles and locations"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Profile
from ...shared.timeutils import utcnow


class ProviderRepository:
    """Repository for provider profile database operations"""

    @staticmethod
    def get_profile(db: Session, user_id: int) -> Optional[Profile]:
        return db.query(Profile).filter(Profile.user_id == user_id).first()

    @staticmethod
    def save_location(
        db: Session, user_id: int, lat: float, lng: float, is_available: bool
    ) -> Profile:
        """Persist the last known location, creating the profile if needed"""
        profile = ProviderRepository.get_profile(db, user_id)
        if profile is None:
            profile = Profile(user_id=user_id)
            db.add(profile)

        profile.latitude = lat
        profile.longitude = lng
        profile.is_available = is_available
        profile.location_updated_at = utcnow()
        db.commit()
        db.refresh(profile)
        return profile

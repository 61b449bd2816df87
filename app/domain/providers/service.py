"""Provider service - Nearby search and live location for mechanics"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import config
from ...models import User
from ...services.notification_service import notification_service
from ...shared.geo import estimate_eta_minutes, haversine_km
from ..bookings.repository import BookingRepository, OfferRepository
from ..catalog.repository import CatalogRepository
from .repository import ProviderRepository
from .schemas import LocationUpdate, NearbyProvider

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_NAME = "Mechanic"


class ProvidersService:
    """Service layer for provider discovery and location updates"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProviderRepository()

    def get_nearby(self, service_id: int, lat: float, lng: float) -> list[NearbyProvider]:
        """
        Providers offering a service, closest first.

        Providers that never reported a location are listed with distance 0
        and the default ETA.
        """
        service = CatalogRepository.get_active_service(self.db, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")

        providers = OfferRepository.find_candidate_providers(self.db, service_id)
        ratings = BookingRepository.get_average_ratings(self.db, [p.id for p in providers])

        results = []
        for provider in providers:
            profile = provider.profile
            if profile is not None and profile.latitude is not None and profile.longitude is not None:
                distance_km = haversine_km(lat, lng, profile.latitude, profile.longitude)
                distance_meters = round(distance_km * 1000)
                eta = estimate_eta_minutes(distance_km, config.AVERAGE_SPEED_KMH)
            else:
                distance_meters = 0
                eta = config.DEFAULT_ETA_MINUTES

            rating = ratings.get(provider.id)
            results.append(
                NearbyProvider(
                    providerId=provider.id,
                    name=(profile.full_name if profile else None) or DEFAULT_PROVIDER_NAME,
                    distanceMeters=distance_meters,
                    etaMinutes=eta,
                    rating=round(rating, 2) if rating is not None else None,
                    basePrice=service.base_price,
                    serviceName=service.name,
                )
            )

        results.sort(key=lambda p: p.distanceMeters)
        return results

    def update_location(self, provider: User, data: LocationUpdate) -> dict:
        self.repo.save_location(self.db, provider.id, data.lat, data.lng, data.isAvailable)
        reached = notification_service.notify_provider_location(
            provider.id, data.lat, data.lng, data.isAvailable
        )
        logger.debug(f"📍 Provider {provider.id} location pushed to {reached} subscriber(s)")
        return {"ok": True}

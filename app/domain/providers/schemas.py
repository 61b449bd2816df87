"""Provider domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field


class NearbyProvider(BaseModel):
    providerId: int
    name: str
    distanceMeters: int
    etaMinutes: int
    rating: Optional[float] = None
    basePrice: float
    serviceName: str


class LocationUpdate(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    isAvailable: bool = True


class OfferResponse(BaseModel):
    """An open offer as shown in the provider's inbox"""

    id: int
    bookingId: int
    latitude: float
    longitude: float
    scheduledAt: Optional[str] = None
    price: float
    problem: str
    address: str
    serviceName: str
    offeredAt: str
    ttlMs: int


class OfferDecline(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)

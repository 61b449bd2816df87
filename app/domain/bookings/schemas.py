"""Booking domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..customers.schemas import VehicleResponse


class BookingCreate(BaseModel):
    """Schema for a customer's service request"""

    serviceId: int
    vehicleId: int
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    description: Optional[str] = Field(None, max_length=1000)
    scheduledAt: Optional[datetime] = None  # ISO datetime string
    addressLabel: Optional[str] = Field(None, max_length=200)

    @field_validator("description", "addressLabel")
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class BookingResponse(BaseModel):
    id: int
    status: str
    jobType: str
    price: float
    date: datetime
    scheduledAt: Optional[datetime] = None
    problemDescription: Optional[str] = None
    addressLabel: Optional[str] = None
    latitude: float
    longitude: float
    customerId: int
    providerId: Optional[int] = None
    vehicleId: int
    serviceId: int
    cancellationFee: Optional[float] = None
    declineReason: Optional[str] = None
    createdAt: datetime
    updatedAt: Optional[datetime] = None


class ServiceBrief(BaseModel):
    id: int
    name: str
    basePrice: float


class PartySummary(BaseModel):
    """Customer or provider as shown on a booking"""

    id: int
    fullName: Optional[str] = None
    phone: Optional[str] = None
    avatarUrl: Optional[str] = None


class RatingCreate(BaseModel):
    score: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class RatingResponse(BaseModel):
    score: int
    comment: Optional[str] = None
    createdAt: datetime


class StatusHistoryEntry(BaseModel):
    fromStatus: Optional[str] = None
    toStatus: str
    actorUserId: Optional[int] = None
    note: Optional[str] = None
    createdAt: datetime


class BookingItemCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(1, ge=1, le=100)
    unitPrice: float = Field(..., ge=0)


class BookingItemResponse(BaseModel):
    id: int
    description: str
    quantity: int
    unitPrice: float
    total: float


class BookingDetailResponse(BookingResponse):
    service: ServiceBrief
    vehicle: VehicleResponse
    customer: PartySummary
    provider: Optional[PartySummary] = None
    rating: Optional[RatingResponse] = None
    items: list[BookingItemResponse] = []
    statusHistory: list[StatusHistoryEntry] = []


class MessageCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=2000)


class MessageResponse(BaseModel):
    id: int
    bookingId: int
    senderId: int
    body: str
    createdAt: datetime


class AttachmentUploadRequest(BaseModel):
    filename: str = Field(..., min_length=1, max_length=255)
    contentType: str = Field(..., min_length=1, max_length=100)


class AttachmentResponse(BaseModel):
    id: int
    bookingId: int
    uploaderId: int
    key: str
    url: str
    contentType: str
    createdAt: datetime


class AttachmentUploadResponse(BaseModel):
    uploadUrl: str
    attachment: AttachmentResponse
